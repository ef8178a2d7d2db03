"""Collection model and tier naming convention."""

from datetime import datetime

from pydantic import Field, computed_field

from .base import ResearchBaseModel
from .enums import Tier

# Name prefix -> tier. Checked in order, first match wins.
TIER_PREFIXES: list[tuple[str, Tier]] = [
    ("universal-", Tier.UNIVERSAL),
    ("lang-", Tier.TECH_STACK),
    ("framework-", Tier.TECH_STACK),
    ("db-", Tier.TECH_STACK),
    ("tool-", Tier.TECH_STACK),
    ("stack-", Tier.TECH_STACK),
    ("project-", Tier.PROJECT),
]

TIER_ORDER: dict[Tier | None, int] = {
    Tier.UNIVERSAL: 0,
    Tier.TECH_STACK: 1,
    Tier.PROJECT: 2,
    None: 3,
}


def classify_tier(name: str) -> Tier | None:
    """Derive a collection's tier from its name.

    Args:
        name: Collection name, e.g. ``framework-react``

    Returns:
        The matching tier, or None when the name follows no known prefix
    """
    lowered = name.strip().lower()
    for prefix, tier in TIER_PREFIXES:
        if lowered.startswith(prefix):
            return tier
    return None


class Collection(ResearchBaseModel):
    """A named partition of the backend index."""

    id: str = Field(..., min_length=1, description="Backend collection identifier")
    name: str = Field(..., min_length=1, description="Collection name")
    description: str | None = Field(None, description="Free-text description")
    document_count: int = Field(0, ge=0, description="Number of documents in the collection")
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def tier(self) -> Tier | None:
        return classify_tier(self.name)

    def sort_key(self) -> tuple[int, str]:
        return (TIER_ORDER[self.tier], self.name.lower())

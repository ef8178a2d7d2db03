"""Base Pydantic schema for r2r-research models."""

from pydantic import BaseModel, ConfigDict


class ResearchBaseModel(BaseModel):
    """Base Pydantic model for all schemas with common configuration."""

    model_config = ConfigDict(
        # Validate on assignment
        validate_assignment=True,
        # Use enum values instead of enum members
        use_enum_values=True,
        str_strip_whitespace=True,
        # Backend payloads carry fields we do not model
        extra="ignore",
    )

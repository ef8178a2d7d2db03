"""Search query, result and response schemas."""

from typing import Any

from pydantic import ConfigDict, Field, field_validator

from .base import ResearchBaseModel
from .collection import Collection


class SearchQuery(ResearchBaseModel):
    """A hybrid search request as sent to the backend."""

    text: str = Field(..., min_length=1, description="Free-text query")
    collections: list[str] = Field(default_factory=list, description="Collection names or ids; empty means all")
    limit: int = Field(10, ge=1, le=1000, description="Maximum number of results")
    use_hybrid: bool = Field(True, description="Blend keyword matching into semantic search")
    semantic_weight: float = Field(5.0, ge=0.0)
    full_text_weight: float = Field(1.0, ge=0.0)
    full_text_limit: int = Field(200, ge=1)
    rrf_k: int = Field(50, ge=1)

    @field_validator("collections")
    @classmethod
    def _reject_blank_collections(cls, value: list[str]) -> list[str]:
        if any(not ref or not ref.strip() for ref in value):
            raise ValueError("collection names must not be blank")
        return [ref.strip() for ref in value]


class SearchResult(ResearchBaseModel):
    """One ranked chunk returned by the backend."""

    # Chunk text keeps its indentation (code snippets)
    model_config = ConfigDict(str_strip_whitespace=False)

    id: str
    document_id: str | None = None
    collection_ids: list[str] = Field(default_factory=list)
    score: float | None = None
    text: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def title(self) -> str:
        for key in ("title", "source"):
            value = self.metadata.get(key)
            if value:
                return str(value)
        return self.document_id or self.id


class SearchResponse(ResearchBaseModel):
    """Results of one research search, after any fallback."""

    query: str
    collections: list[Collection] = Field(default_factory=list)
    results: list[SearchResult] = Field(default_factory=list)
    fallback_used: bool = False
    hints: list[str] = Field(default_factory=list)

    @property
    def collection_names(self) -> list[str]:
        return [c.name for c in self.collections]

    def collection_name_for(self, collection_id: str) -> str:
        for collection in self.collections:
            if collection.id == collection_id:
                return collection.name
        return collection_id

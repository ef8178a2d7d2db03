"""Research service: collection resolution, hybrid search and universal fallback."""

from __future__ import annotations

from ..core.errors import CollectionNotFoundError
from ..core.models.collection import Collection
from ..core.models.enums import Tier
from ..core.models.search import SearchQuery, SearchResponse, SearchResult
from ..core.models.settings import ResearchSettings
from ..integrations.r2r_client import R2RClient
from ..observability.logger import get_logger

logger = get_logger(__name__)

SPARSE_RESULT_HINTS = [
    "Broaden the query: fewer specific terms, more general concepts.",
    "Try a universal-tier collection (see `r2r-research collections --tier universal`).",
    "If the docs still come up short, fall back to web search.",
]


def _score(result: SearchResult) -> float:
    return result.score if result.score is not None else float("-inf")


def merge_results(*batches: list[SearchResult], limit: int) -> list[SearchResult]:
    """Merge result batches, dropping duplicate ids and keeping the higher score.

    Ordering is by score descending; equal scores keep first-seen order.
    """
    best: dict[str, SearchResult] = {}
    order: dict[str, int] = {}
    for batch in batches:
        for res in batch:
            if res.id not in best:
                order[res.id] = len(order)
                best[res.id] = res
            elif _score(res) > _score(best[res.id]):
                best[res.id] = res

    merged = sorted(best.values(), key=lambda r: (-_score(r), order[r.id]))
    return merged[:limit]


class ResearchService:
    def __init__(self, client: R2RClient, settings: ResearchSettings):
        self.client = client
        self.settings = settings
        self._collections: list[Collection] | None = None

    async def list_collections(self, tier: Tier | str | None = None) -> list[Collection]:
        """All collections, ordered universal -> tech-stack -> project -> untiered, then by name."""
        if self._collections is None:
            fetched = await self.client.list_collections()
            self._collections = sorted(fetched, key=lambda c: c.sort_key())

        if tier is None:
            return list(self._collections)
        wanted = Tier(tier)
        return [c for c in self._collections if c.tier == wanted]

    async def resolve_collections(self, refs: list[str]) -> list[Collection]:
        """Map collection names or ids to collections.

        Matching order per ref: exact id, exact name, case-insensitive name.

        Raises:
            CollectionNotFoundError: If any ref matches nothing
        """
        if not refs:
            return []

        available = await self.list_collections()
        by_id = {c.id: c for c in available}
        by_name = {c.name: c for c in available}
        by_lower = {c.name.lower(): c for c in available}

        resolved: list[Collection] = []
        seen: set[str] = set()
        unknown: list[str] = []
        for ref in refs:
            ref = ref.strip()
            match = by_id.get(ref) or by_name.get(ref) or by_lower.get(ref.lower())
            if match is None:
                unknown.append(ref)
                continue
            if match.id not in seen:
                seen.add(match.id)
                resolved.append(match)

        if unknown:
            raise CollectionNotFoundError(unknown, available=[c.name for c in available])
        return resolved

    async def describe(self, ref: str) -> Collection:
        """Full record for one collection, by id or name."""
        (collection,) = await self.resolve_collections([ref])
        return await self.client.get_collection(collection.id)

    def build_query(self, text: str, collections: list[str], limit: int | None) -> SearchQuery:
        search = self.settings.search
        return SearchQuery(
            text=text,
            collections=collections,
            limit=limit if limit is not None else self.settings.default_limit,
            semantic_weight=search.semantic_weight,
            full_text_weight=search.full_text_weight,
            full_text_limit=search.full_text_limit,
            rrf_k=search.rrf_k,
        )

    async def search(
        self,
        text: str,
        collections: list[str] | None = None,
        limit: int | None = None,
        fallback: bool | None = None,
    ) -> SearchResponse:
        """Hybrid search over the given collections (all collections when none given).

        When explicit collections return fewer than ``search.min_results``
        hits (capped at the requested limit, so a full page is never sparse),
        the search is repeated with every universal-tier collection added and
        the two result sets are merged.
        """
        query = self.build_query(text, collections or [], limit)
        selected = await self.resolve_collections(query.collections)

        results = await self.client.search(query, [c.id for c in selected])
        results = merge_results(results, limit=query.limit)

        min_results = min(self.settings.search.min_results, query.limit)
        use_fallback = self.settings.search.fallback_to_universal if fallback is None else fallback
        fallback_used = False

        if use_fallback and selected and len(results) < min_results:
            selected_ids = {c.id for c in selected}
            extra = [
                c
                for c in await self.list_collections(Tier.UNIVERSAL)
                if c.id not in selected_ids
            ]
            if extra:
                logger.info(
                    "search_fallback_universal",
                    result_count=len(results),
                    min_results=min_results,
                    added=[c.name for c in extra],
                )
                selected = selected + extra
                broadened = await self.client.search(query, [c.id for c in selected])
                results = merge_results(results, broadened, limit=query.limit)
                fallback_used = True

        hints = list(SPARSE_RESULT_HINTS) if len(results) < min_results else []

        logger.info(
            "search_completed",
            result_count=len(results),
            collections=[c.name for c in selected],
            fallback_used=fallback_used,
        )
        return SearchResponse(
            query=query.text,
            collections=selected,
            results=results,
            fallback_used=fallback_used,
            hints=hints,
        )

"""Async R2R REST client with retry logic."""

from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from ..core.errors import (
    AuthenticationError,
    BackendError,
    ConnectionFailedError,
    InvalidResponseError,
    NotFoundError,
    ResearchError,
)
from ..core.models.collection import Collection
from ..core.models.search import SearchQuery, SearchResult
from ..core.models.settings import ResearchSettings
from ..observability.logger import get_logger

logger = get_logger(__name__)

API_PREFIX = "/v3"


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, ResearchError) and exc.retryable


def _error_detail(response: httpx.Response) -> str:
    """Pull a human-readable message out of an error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text.strip() or response.reason_phrase
    if isinstance(body, dict):
        for key in ("detail", "message", "error"):
            value = body.get(key)
            if isinstance(value, dict):
                value = value.get("message") or value
            if value:
                return str(value)
    return str(body)


class R2RClient:
    """Thin wrapper over the R2R v3 REST API.

    Use as an async context manager::

        async with R2RClient("http://localhost:7272") as client:
            results = await client.search(query, collection_ids=[])
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        backoff: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            base_url: Backend root URL, e.g. http://localhost:7272
            api_key: Bearer token sent on every request when set
            timeout: Request timeout in seconds
            max_retries: Total attempts for retryable failures (transport errors, 5xx)
            backoff: Exponential backoff multiplier in seconds; 0 disables waiting
            transport: Optional httpx transport (tests pass httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.max_retries = max(1, max_retries)
        self.backoff = backoff

        headers = {"Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

        logger.debug("r2r_client_initialized", base_url=self.base_url, authenticated=bool(api_key))

    @classmethod
    def from_settings(
        cls,
        settings: ResearchSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "R2RClient":
        return cls(
            base_url=settings.base_url,
            api_key=settings.api_key,
            timeout=settings.timeout,
            max_retries=settings.retry.max_attempts,
            backoff=settings.retry.backoff,
            transport=transport,
        )

    async def __aenter__(self) -> "R2RClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """Send one request with retries and return the decoded JSON body.

        Raises:
            ConnectionFailedError: Backend unreachable after all attempts
            AuthenticationError: 401/403
            NotFoundError: 404
            BackendError: Any other error status (5xx after all attempts)
            InvalidResponseError: Body is not JSON
        """
        url = f"{API_PREFIX}{path}"
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=self.backoff, max=10),
            retry=retry_if_exception(_is_retryable),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                attempt_number = attempt.retry_state.attempt_number
                if attempt_number > 1:
                    logger.info("r2r_request_retry", method=method, path=url, attempt=attempt_number)
                response = await self._send(method, url, params=params, json=json)
        return self._decode(response)

    async def _send(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None,
        json: dict[str, Any] | None,
    ) -> httpx.Response:
        try:
            response = await self._client.request(method, url, params=params, json=json)
        except httpx.TransportError as e:
            logger.warning("r2r_request_failed", method=method, path=url, error=str(e))
            raise ConnectionFailedError(
                f"Could not reach R2R at {self.base_url}: {e}",
                details={"base_url": self.base_url},
            ) from e

        logger.debug("r2r_response", method=method, path=url, status=response.status_code)

        status = response.status_code
        if status < 400:
            return response

        detail = _error_detail(response)
        if status in (401, 403):
            raise AuthenticationError(
                f"R2R rejected the credentials ({status}): {detail}. "
                "Check R2R_RESEARCH_API_KEY.",
                status_code=status,
            )
        if status == 404:
            raise NotFoundError(f"Not found: {url} ({detail})", status_code=status)
        if status >= 500:
            logger.warning("r2r_server_error", method=method, path=url, status=status)
        raise BackendError(f"R2R returned {status}: {detail}", status_code=status)

    def _decode(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise InvalidResponseError(
                "Failed to decode R2R response as JSON.",
                details={"status_code": response.status_code},
            ) from e

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------
    def build_search_payload(self, query: SearchQuery, collection_ids: list[str]) -> dict[str, Any]:
        search_settings: dict[str, Any] = {
            "use_semantic_search": True,
            "use_fulltext_search": query.use_hybrid,
            "use_hybrid_search": query.use_hybrid,
            "limit": query.limit,
            "include_scores": True,
            "include_metadatas": True,
        }
        if query.use_hybrid:
            search_settings["hybrid_settings"] = {
                "semantic_weight": query.semantic_weight,
                "full_text_weight": query.full_text_weight,
                "full_text_limit": query.full_text_limit,
                "rrf_k": query.rrf_k,
            }
        if collection_ids:
            search_settings["filters"] = {"collection_ids": {"$overlap": list(collection_ids)}}

        return {
            "query": query.text,
            "search_mode": "custom",
            "search_settings": search_settings,
        }

    async def search(self, query: SearchQuery, collection_ids: list[str]) -> list[SearchResult]:
        """Run a hybrid search.

        Args:
            query: Query text, limit and hybrid weights
            collection_ids: Backend collection ids to restrict to; empty searches everything

        Returns:
            Chunk results in backend order
        """
        payload = self.build_search_payload(query, collection_ids)
        logger.info(
            "r2r_search",
            query_length=len(query.text),
            limit=query.limit,
            collections=len(collection_ids),
        )
        body = await self._request("POST", "/retrieval/search", json=payload)

        results = body.get("results") if isinstance(body, dict) else None
        if isinstance(results, dict):
            chunks = results.get("chunk_search_results") or []
        elif isinstance(results, list):
            chunks = results
        else:
            raise InvalidResponseError("R2R search response did not include 'results'.")

        try:
            return [SearchResult.model_validate(chunk) for chunk in chunks]
        except ValueError as e:
            raise InvalidResponseError(f"Malformed search result: {e}") from e

    async def list_collections(self, page_size: int = 100) -> list[Collection]:
        """Fetch every collection visible to the caller, following pagination."""
        collections: list[Collection] = []
        offset = 0
        while True:
            body = await self._request(
                "GET", "/collections", params={"offset": offset, "limit": page_size}
            )
            if not isinstance(body, dict) or not isinstance(body.get("results"), list):
                raise InvalidResponseError("R2R collections response did not include a 'results' list.")

            page = body["results"]
            try:
                collections.extend(Collection.model_validate(item) for item in page)
            except ValueError as e:
                raise InvalidResponseError(f"Malformed collection record: {e}") from e

            offset += len(page)
            total = body.get("total_entries")
            if len(page) < page_size or (isinstance(total, int) and offset >= total):
                break

        logger.debug("r2r_collections_listed", count=len(collections))
        return collections

    async def get_collection(self, collection_id: str) -> Collection:
        body = await self._request("GET", f"/collections/{collection_id}")
        record = body.get("results") if isinstance(body, dict) else None
        if not isinstance(record, dict):
            raise InvalidResponseError("R2R collection response did not include a 'results' object.")
        try:
            return Collection.model_validate(record)
        except ValueError as e:
            raise InvalidResponseError(f"Malformed collection record: {e}") from e

    async def health(self) -> dict[str, Any]:
        body = await self._request("GET", "/health")
        if isinstance(body, dict) and isinstance(body.get("results"), dict):
            return body["results"]
        return body if isinstance(body, dict) else {"message": str(body)}

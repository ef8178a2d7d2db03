"""Shared fixtures: a fake R2R backend served through httpx.MockTransport."""

import json
import os
from typing import Any

import httpx
import pytest

from r2r_research.integrations.r2r_client import R2RClient

COLLECTIONS = [
    {"id": "c-react", "name": "framework-react", "description": "React docs", "document_count": 42},
    {"id": "c-pg", "name": "db-postgres", "description": "PostgreSQL manual", "document_count": 17},
    {"id": "c-univ", "name": "universal-patterns", "description": "Design patterns", "document_count": 8},
    {"id": "c-acme", "name": "project-acme", "description": "Acme codebase", "document_count": 120},
    {"id": "c-misc", "name": "scratch", "description": None, "document_count": 0},
]

CHUNKS = [
    {
        "id": "r1",
        "document_id": "doc-react-hooks",
        "collection_ids": ["c-react"],
        "score": 0.91,
        "text": "useEffect runs after render.",
        "metadata": {"title": "Hooks reference"},
    },
    {
        "id": "u1",
        "document_id": "doc-observer",
        "collection_ids": ["c-univ"],
        "score": 0.72,
        "text": "The observer pattern decouples producers from consumers.",
        "metadata": {"source": "patterns/observer.md"},
    },
    {
        "id": "u2",
        "document_id": "doc-state",
        "collection_ids": ["c-univ", "c-react"],
        "score": 0.65,
        "text": "State machines make UI transitions explicit.",
        "metadata": {},
    },
    {
        "id": "p1",
        "document_id": "doc-pg-index",
        "collection_ids": ["c-pg"],
        "score": 0.55,
        "text": "GIN indexes support full text search.",
        "metadata": {"title": "Indexes"},
    },
]


class FakeR2R:
    """In-memory stand-in for the R2R v3 API."""

    def __init__(self, collections: list[dict[str, Any]] | None = None, chunks: list[dict[str, Any]] | None = None):
        self.collections = list(COLLECTIONS if collections is None else collections)
        self.chunks = list(CHUNKS if chunks is None else chunks)
        self.requests: list[httpx.Request] = []
        self.search_payloads: list[dict[str, Any]] = []
        # Status codes to answer with before serving normally
        self.fail_with: list[int] = []

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def client(self, **kwargs: Any) -> R2RClient:
        kwargs.setdefault("backoff", 0)
        return R2RClient("http://r2r.test", transport=self.transport(), **kwargs)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with:
            return httpx.Response(self.fail_with.pop(0), json={"detail": "injected failure"})

        path = request.url.path
        if request.method == "GET" and path == "/v3/health":
            return httpx.Response(200, json={"results": {"message": "ok"}})

        if request.method == "GET" and path == "/v3/collections":
            offset = int(request.url.params.get("offset", 0))
            limit = int(request.url.params.get("limit", 100))
            page = self.collections[offset : offset + limit]
            return httpx.Response(200, json={"results": page, "total_entries": len(self.collections)})

        if request.method == "GET" and path.startswith("/v3/collections/"):
            collection_id = path.rsplit("/", 1)[-1]
            for item in self.collections:
                if item["id"] == collection_id:
                    return httpx.Response(200, json={"results": item})
            return httpx.Response(404, json={"detail": "Collection not found"})

        if request.method == "POST" and path == "/v3/retrieval/search":
            payload = json.loads(request.content)
            self.search_payloads.append(payload)
            settings = payload.get("search_settings", {})
            wanted = settings.get("filters", {}).get("collection_ids", {}).get("$overlap")
            hits = [
                chunk
                for chunk in self.chunks
                if wanted is None or set(chunk["collection_ids"]) & set(wanted)
            ]
            hits = hits[: settings.get("limit", 10)]
            return httpx.Response(200, json={"results": {"chunk_search_results": hits, "graph_search_results": []}})

        return httpx.Response(404, json={"detail": f"no route for {request.method} {path}"})


@pytest.fixture
def fake_r2r() -> FakeR2R:
    return FakeR2R()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's R2R_RESEARCH_* variables out of the tests."""
    for key in list(os.environ):
        if key.startswith("R2R_RESEARCH_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def fake_r2r_factory():
    return FakeR2R

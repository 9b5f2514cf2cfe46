"""Shared pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any

import pytest

from vsearch.exceptions import EmbeddingCallError, UploadError
from vsearch.retrieval.base import VectorIndexBase
from vsearch.store import KeySpace


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── Fakes for the external collaborators ────────────────────────────────


class FakeEmbedder:
    """Deterministic embedder: vector is ``[len(text), 1.0]``."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.queries: list[str] = []
        self.fail = False

    def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        if self.fail:
            raise EmbeddingCallError("model exploded")
        return [[float(len(t)), 1.0] for t in texts]

    def embed_query(self, text: str) -> list[float]:
        self.queries.append(text)
        return [float(len(text)), 1.0]


class FakeVectorIndex(VectorIndexBase):
    """In-memory index that records every upsert."""

    def __init__(self, hits: list[dict[str, Any]] | None = None) -> None:
        super().__init__("test-collection")
        self.upserts: list[tuple[list[int], list[list[float]]]] = []
        self.points: dict[int, list[float]] = {}
        self.hits = hits or []
        self.fail = False

    def upsert(self, ids: Sequence[int], vectors: Sequence[Sequence[float]]) -> None:
        if self.fail:
            raise UploadError("index unavailable")
        self.upserts.append((list(ids), [list(v) for v in vectors]))
        for pid, vec in zip(ids, vectors):
            self.points[pid] = list(vec)

    def search(self, query_vector: Sequence[float], *, k: int = 30) -> list[dict[str, Any]]:
        return self.hits[:k]

    def health_check(self) -> bool:
        return True

    @property
    def uploaded_ids(self) -> list[list[int]]:
        return [ids for ids, _ in self.upserts]


@pytest.fixture()
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture()
def fake_index() -> FakeVectorIndex:
    return FakeVectorIndex()


@pytest.fixture()
def keyspace(tmp_path: Path):
    ks = KeySpace(tmp_path / "cases.db")
    yield ks
    ks.close()

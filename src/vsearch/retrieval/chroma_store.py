"""Chroma implementation of the vector-index abstraction."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import chromadb

from vsearch.exceptions import UploadError
from vsearch.retrieval.base import VectorIndexBase

logger = logging.getLogger(__name__)


class ChromaVectorIndex(VectorIndexBase):
    """Chroma-backed vector index.

    Point ids are stored as decimal strings; no documents or metadata are
    attached, only vectors.

    Parameters
    ----------
    collection_name:
        Name of the Chroma collection.
    host:
        Chroma server hostname.
    port:
        Chroma server port.
    distance_metric:
        ``"cosine"`` | ``"l2"`` | ``"ip"``, used when the collection is created.
    client:
        Pre-built Chroma client; a ``chromadb.HttpClient`` is created when omitted.
    """

    def __init__(
        self,
        collection_name: str,
        *,
        host: str = "localhost",
        port: int = 8000,
        distance_metric: str = "cosine",
        client: Any = None,
    ) -> None:
        super().__init__(collection_name)
        self._client = client if client is not None else chromadb.HttpClient(host=host, port=port)
        self._distance_metric = distance_metric
        self._collection = self._client.get_or_create_collection(
            name=collection_name,
            metadata={"hnsw:space": distance_metric},
        )

    def upsert(self, ids: Sequence[int], vectors: Sequence[Sequence[float]]) -> None:
        if len(ids) != len(vectors):
            raise UploadError(f"got {len(ids)} ids but {len(vectors)} vectors")
        if not ids:
            return
        try:
            self._collection.upsert(
                ids=[str(i) for i in ids],
                embeddings=[list(v) for v in vectors],
            )
        except Exception as exc:
            raise UploadError(
                f"upsert of {len(ids)} points into {self.collection_name!r} failed: {exc}"
            ) from exc
        logger.debug("Upserted %d points into %s", len(ids), self.collection_name)

    def search(self, query_vector: Sequence[float], *, k: int = 30) -> list[dict[str, Any]]:
        results = self._collection.query(
            query_embeddings=[list(query_vector)],
            n_results=k,
            include=["distances"],
        )
        ids = results.get("ids", [[]])[0]
        distances = results.get("distances", [[]])[0]
        return [
            {"id": int(pid), "score": self._to_score(dist)}
            for pid, dist in zip(ids, distances)
        ]

    def _to_score(self, distance: float) -> float:
        # Chroma reports distances; flip them so higher means closer.
        if self._distance_metric in ("cosine", "ip"):
            return 1.0 - distance
        return 1.0 / (1.0 + distance)

    def health_check(self) -> bool:
        try:
            self._client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False

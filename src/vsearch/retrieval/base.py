"""Abstract base class for vector-index backends.

Adding a new backend (Qdrant, Pinecone, …) only requires subclassing
:class:`VectorIndexBase` and implementing the three abstract methods.
The ingestion loop and the searcher are backend-agnostic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any


class VectorIndexBase(ABC):
    """Backend-agnostic vector-index interface.

    Parameters
    ----------
    collection_name:
        Logical name of the collection / index / namespace.
    """

    def __init__(self, collection_name: str) -> None:
        self.collection_name = collection_name

    @abstractmethod
    def upsert(self, ids: Sequence[int], vectors: Sequence[Sequence[float]]) -> None:
        """Insert or overwrite one point per id, with an empty payload.

        The call succeeds or fails as a whole; failures raise
        :class:`~vsearch.exceptions.UploadError`.
        """
        ...

    @abstractmethod
    def search(self, query_vector: Sequence[float], *, k: int = 30) -> list[dict[str, Any]]:
        """Return the top-*k* points nearest to *query_vector*.

        Each result dict contains ``"id"`` (int point id) and ``"score"``
        (higher = more similar).
        """
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...

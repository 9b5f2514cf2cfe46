"""
Retrieval: vector index backends and query-time case search.

Public surface
--------------
- :class:`VectorIndexBase`: abstract backend (subclass for Qdrant, etc.).
- :class:`ChromaVectorIndex`: default Chroma backend.
- :class:`CaseSearcher`: embed a query and return :class:`SearchHit` objects.
- :func:`point_id`, :func:`split_point_id`: case / chunk point ids.
"""

from vsearch.retrieval.base import VectorIndexBase
from vsearch.retrieval.models import SearchHit, point_id, split_point_id
from vsearch.retrieval.searcher import CaseSearcher

__all__ = [
    "CaseSearcher",
    "ChromaVectorIndex",
    "SearchHit",
    "VectorIndexBase",
    "point_id",
    "split_point_id",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaVectorIndex to avoid pulling in chromadb at import time."""
    if name == "ChromaVectorIndex":
        from vsearch.retrieval.chroma_store import ChromaVectorIndex

        return ChromaVectorIndex
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

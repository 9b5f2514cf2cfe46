"""Case searcher: embed a free-text query and look up the nearest cases.

Usage::

    from vsearch.retrieval.searcher import CaseSearcher

    searcher = CaseSearcher(index, embedder, cases=partition)
    for hit in searcher.search("北京动物保护", k=30):
        print(hit)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from vsearch.exceptions import DecodeError
from vsearch.ingestion.loader import decode_case
from vsearch.retrieval.base import VectorIndexBase
from vsearch.retrieval.models import SearchHit, split_point_id
from vsearch.store import Partition, encode_id

if TYPE_CHECKING:
    from vsearch.ingestion.embedder import Embedder

logger = logging.getLogger(__name__)


class CaseSearcher:
    """Query-side counterpart of the ingestion loop.

    Parameters
    ----------
    index:
        The vector index the cases were ingested into.
    embedder:
        The same embedding model used at ingestion time.
    cases:
        Optional ``cases`` partition; when given, hits carry the case name.
    default_k:
        Default number of results returned by :meth:`search`.
    """

    def __init__(
        self,
        index: VectorIndexBase,
        embedder: Embedder,
        *,
        cases: Partition | None = None,
        default_k: int = 30,
    ) -> None:
        self._index = index
        self._embedder = embedder
        self._cases = cases
        self.default_k = default_k

    def search(self, query: str, *, k: int | None = None) -> list[SearchHit]:
        """Run a semantic search for *query*, best match first."""
        k = k or self.default_k
        vector = self._embedder.embed_query(query)
        return self._to_hits(self._index.search(vector, k=k))

    def _to_hits(self, raw_hits: list[dict[str, Any]]) -> list[SearchHit]:
        hits: list[SearchHit] = []
        for raw in raw_hits:
            case_id, chunk_index = split_point_id(raw["id"])
            hits.append(
                SearchHit(
                    case_id=case_id,
                    chunk_index=chunk_index,
                    score=raw["score"],
                    case_name=self._case_name(case_id),
                )
            )
        return hits

    def _case_name(self, case_id: int) -> str | None:
        if self._cases is None:
            return None
        raw = self._cases.get(encode_id(case_id))
        if raw is None:
            logger.warning("Case %d is indexed but missing from the store", case_id)
            return None
        try:
            return decode_case(raw).case_name
        except DecodeError:
            logger.warning("Case %d could not be decoded", case_id, exc_info=True)
            return None

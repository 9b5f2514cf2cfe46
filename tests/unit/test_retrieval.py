"""Unit tests for point ids, the Chroma backend and CaseSearcher."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from vsearch.exceptions import UploadError
from vsearch.ingestion.loader import Case
from vsearch.retrieval.chroma_store import ChromaVectorIndex
from vsearch.retrieval.models import SearchHit, point_id, split_point_id
from vsearch.retrieval.searcher import CaseSearcher
from vsearch.store import KeySpace, encode_id


# ── Point ids ──────────────────────────────────────────────────────────


class TestPointIds:
    def test_whole_case_uses_case_id(self) -> None:
        assert point_id(42) == 42
        assert split_point_id(42) == (42, None)

    def test_chunk_id_is_composite(self) -> None:
        assert point_id(1, 0) == 1 << 32
        assert point_id(3, 5) == (3 << 32) | 5

    @pytest.mark.parametrize(("case_id", "chunk"), [(1, 0), (7, 3), (0xFFFFFFFF, 0xFFFFFFFF)])
    def test_split_inverts_composite(self, case_id: int, chunk: int) -> None:
        assert split_point_id(point_id(case_id, chunk)) == (case_id, chunk)


class TestSearchHit:
    def test_str_for_case(self) -> None:
        hit = SearchHit(case_id=12, score=0.91234, case_name="张某盗窃案")
        assert str(hit) == "12\t0.9123 张某盗窃案"

    def test_str_for_chunk(self) -> None:
        assert str(SearchHit(case_id=12, chunk_index=2, score=0.5)) == "12#2\t0.5000"


# ── ChromaVectorIndex ──────────────────────────────────────────────────


@pytest.fixture()
def chroma_client() -> MagicMock:
    return MagicMock()


@pytest.fixture()
def chroma_index(chroma_client: MagicMock) -> ChromaVectorIndex:
    return ChromaVectorIndex("cases", client=chroma_client)


class TestChromaVectorIndex:
    def test_collection_created_with_metric(self, chroma_client: MagicMock) -> None:
        ChromaVectorIndex("cases", client=chroma_client, distance_metric="l2")
        chroma_client.get_or_create_collection.assert_called_once_with(
            name="cases", metadata={"hnsw:space": "l2"}
        )

    def test_upsert_sends_string_ids_without_payload(
        self, chroma_index: ChromaVectorIndex, chroma_client: MagicMock
    ) -> None:
        chroma_index.upsert([1, 1 << 32], [[0.1, 0.2], (0.3, 0.4)])

        collection = chroma_client.get_or_create_collection.return_value
        collection.upsert.assert_called_once_with(
            ids=["1", str(1 << 32)],
            embeddings=[[0.1, 0.2], [0.3, 0.4]],
        )

    def test_upsert_failure_becomes_upload_error(
        self, chroma_index: ChromaVectorIndex, chroma_client: MagicMock
    ) -> None:
        collection = chroma_client.get_or_create_collection.return_value
        collection.upsert.side_effect = ConnectionError("refused")

        with pytest.raises(UploadError, match="refused"):
            chroma_index.upsert([1], [[0.1]])

    def test_upsert_rejects_length_mismatch(self, chroma_index: ChromaVectorIndex) -> None:
        with pytest.raises(UploadError, match="2 ids but 1 vectors"):
            chroma_index.upsert([1, 2], [[0.1]])

    def test_empty_upsert_is_a_no_op(
        self, chroma_index: ChromaVectorIndex, chroma_client: MagicMock
    ) -> None:
        chroma_index.upsert([], [])
        chroma_client.get_or_create_collection.return_value.upsert.assert_not_called()

    def test_search_converts_distances(
        self, chroma_index: ChromaVectorIndex, chroma_client: MagicMock
    ) -> None:
        collection = chroma_client.get_or_create_collection.return_value
        collection.query.return_value = {"ids": [["5", "9"]], "distances": [[0.1, 0.4]]}

        hits = chroma_index.search([1.0, 0.0], k=2)

        assert hits == [{"id": 5, "score": pytest.approx(0.9)}, {"id": 9, "score": pytest.approx(0.6)}]
        collection.query.assert_called_once_with(
            query_embeddings=[[1.0, 0.0]], n_results=2, include=["distances"]
        )

    def test_health_check(self, chroma_index: ChromaVectorIndex, chroma_client: MagicMock) -> None:
        assert chroma_index.health_check() is True
        chroma_client.heartbeat.side_effect = ConnectionError("down")
        assert chroma_index.health_check() is False


# ── CaseSearcher ───────────────────────────────────────────────────────


class TestCaseSearcher:
    def test_search_embeds_query_and_maps_hits(self, fake_embedder, fake_index) -> None:
        fake_index.hits = [{"id": 3, "score": 0.9}, {"id": point_id(4, 1), "score": 0.8}]
        searcher = CaseSearcher(fake_index, fake_embedder)

        hits = searcher.search("北京动物保护")

        assert fake_embedder.queries == ["北京动物保护"]
        assert [(h.case_id, h.chunk_index, h.score) for h in hits] == [(3, None, 0.9), (4, 1, 0.8)]
        assert all(h.case_name is None for h in hits)

    def test_k_limits_results(self, fake_embedder, fake_index) -> None:
        fake_index.hits = [{"id": i, "score": 1.0 / i} for i in range(1, 10)]
        searcher = CaseSearcher(fake_index, fake_embedder, default_k=5)

        assert len(searcher.search("盗窃")) == 5
        assert len(searcher.search("盗窃", k=2)) == 2

    def test_case_names_from_store(self, keyspace: KeySpace, fake_embedder, fake_index) -> None:
        cases = keyspace.open_partition("cases")
        cases.insert(encode_id(3), Case(case_name="张某盗窃案").to_bytes())
        cases.insert(encode_id(4), b"corrupt")
        fake_index.hits = [
            {"id": 3, "score": 0.9},
            {"id": 4, "score": 0.8},
            {"id": 5, "score": 0.7},
        ]
        searcher = CaseSearcher(fake_index, fake_embedder, cases=cases)

        names = [h.case_name for h in searcher.search("盗窃")]

        assert names == ["张某盗窃案", None, None]

"""Resumable case ingestion: store → chunks → embeddings → vector index.

Cases are visited in ascending id order.  Single-chunk cases are collected
into batches so one embedding call and one upsert cover many cases; the
checkpoint is written only after a batch upload succeeds.  Cases that split
into several chunks are embedded and uploaded on their own, their chunk
vectors merged into one by :func:`aggregate_embeddings`.

Any decode, embedding, or upload failure propagates and ends the run.  A
restart resumes after the last checkpoint, so at most one batch is redone.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from vsearch.config import IngestionSettings
from vsearch.ingestion.chunker import chunk_text
from vsearch.ingestion.embedder import aggregate_embeddings
from vsearch.ingestion.loader import decode_case, strip_markup
from vsearch.retrieval.models import point_id
from vsearch.store import decode_id

if TYPE_CHECKING:
    from vsearch.ingestion.embedder import Embedder
    from vsearch.retrieval.base import VectorIndexBase
    from vsearch.store import Partition, ProgressTracker

logger = logging.getLogger(__name__)


@dataclass
class IngestionStats:
    """Counters reported at the end of a run."""

    start_progress: int = 0
    cases_seen: int = 0
    cases_indexed: int = 0
    multi_chunk_cases: int = 0
    points_uploaded: int = 0
    batches: int = 0
    last_committed: int | None = None
    elapsed_seconds: float = 0.0


class IngestionLoop:
    """Drive one pass over the ``cases`` partition.

    Parameters
    ----------
    cases:
        Key-ordered partition of encoded :class:`~vsearch.ingestion.loader.Case` records.
    progress:
        Checkpoint slot read at start and written after every batch.
    embedder:
        Embedding model; called once per batch and once per multi-chunk case.
    index:
        Vector index receiving the points.
    settings:
        Batch size, token budget, target category and resume override.
    """

    def __init__(
        self,
        cases: Partition,
        progress: ProgressTracker,
        embedder: Embedder,
        index: VectorIndexBase,
        settings: IngestionSettings | None = None,
    ) -> None:
        self._cases = cases
        self._progress = progress
        self._embedder = embedder
        self._index = index
        self.settings = settings or IngestionSettings()

        self._batch_ids: list[int] = []
        self._batch_texts: list[str] = []
        self._stats = IngestionStats()
        self._t0 = 0.0

    # -- public API -----------------------------------------------------------

    def resume_point(self) -> int:
        """Return the id after which this run starts.

        A configured override wins over the persisted checkpoint.
        """
        if self.settings.progress is not None:
            return self.settings.progress
        return self._progress.load() or 0

    def run(self) -> IngestionStats:
        """Process every case past the resume point and return run counters."""
        self._stats = IngestionStats()
        self._batch_ids.clear()
        self._batch_texts.clear()
        self._t0 = time.monotonic()

        start = self.resume_point()
        self._stats.start_progress = start
        logger.info("Progress: %d (batch size %d)", start, self.settings.batch_size)

        for key, value in self._cases.iter():
            case_id = decode_id(key)
            if case_id % self.settings.log_every == 0:
                logger.info(
                    "case count: %d, id: %d, time: %.0fs",
                    self._stats.cases_seen, case_id, self._elapsed(),
                )
            if case_id <= start:
                continue
            self._process(case_id, value)

        if self._batch_ids:
            self._flush_batch()

        self._stats.elapsed_seconds = self._elapsed()
        logger.info(
            "all done: %d cases indexed (%d multi-chunk) in %d batches, time: %.0fs",
            self._stats.cases_indexed,
            self._stats.multi_chunk_cases,
            self._stats.batches,
            self._stats.elapsed_seconds,
        )
        return self._stats

    # -- internals ------------------------------------------------------------

    def _process(self, case_id: int, raw: bytes) -> None:
        case = decode_case(raw)
        if case.case_type != self.settings.case_type or not case.full_text:
            return
        self._stats.cases_seen += 1

        chunks = chunk_text(
            strip_markup(case.full_text),
            self.settings.target_tokens,
            self.settings.max_tokens,
        )
        if not chunks:
            logger.debug("Case %d has no text after stripping markup", case_id)
            return

        if len(chunks) == 1:
            self._batch_ids.append(point_id(case_id))
            self._batch_texts.append(chunks[0])
            if len(self._batch_ids) >= self.settings.batch_size:
                self._flush_batch()
        else:
            self._index_multi_chunk(case_id, chunks)

    def _index_multi_chunk(self, case_id: int, chunks: list[str]) -> None:
        vectors = self._embedder.embed(chunks)
        if self.settings.aggregate_chunks:
            vector = aggregate_embeddings(vectors, [len(c) for c in chunks])
            self._index.upsert([point_id(case_id)], [vector])
            self._stats.points_uploaded += 1
        else:
            ids = [point_id(case_id, i) for i in range(len(chunks))]
            self._index.upsert(ids, vectors)
            self._stats.points_uploaded += len(ids)
        self._stats.cases_indexed += 1
        self._stats.multi_chunk_cases += 1
        logger.debug("Case %d indexed from %d chunks", case_id, len(chunks))

    def _flush_batch(self) -> None:
        vectors = self._embedder.embed(self._batch_texts)
        self._index.upsert(self._batch_ids, vectors)

        # Only after the upload succeeded may the checkpoint move.
        last = self._batch_ids[-1]
        self._progress.save(last)

        self._stats.batches += 1
        self._stats.cases_indexed += len(self._batch_ids)
        self._stats.points_uploaded += len(self._batch_ids)
        self._stats.last_committed = last
        logger.info(
            "batch=%d, case: %d, time: %.0fs, id: %d",
            self._stats.batches, self._stats.cases_seen, self._elapsed(), last,
        )
        self._batch_ids.clear()
        self._batch_texts.clear()

    def _elapsed(self) -> float:
        return time.monotonic() - self._t0

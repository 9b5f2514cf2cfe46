"""Sentence-aligned text chunking with backward rollback.

A case is split into paragraphs, each paragraph into sentence units, and the
units are packed greedily into chunks under a token ceiling.  When a chunk
overflows, trailing units are rolled back into the next chunk instead of being
cut or dropped, so chunks always end on a sentence boundary.
"""

from __future__ import annotations

from dataclasses import dataclass

from vsearch.ingestion.tokens import estimate_tokens

SENTENCE_TERMINATORS = frozenset("。！？；!?;")


def split_paragraphs(text: str) -> list[str]:
    """Split *text* on line breaks, trim each line and drop empty ones."""
    return [line.strip() for line in text.splitlines() if line.strip()]


def split_sentences(paragraph: str) -> list[str]:
    """Split *paragraph* into units ending at a sentence terminator.

    Terminators stay attached to the unit they close, and a run of
    terminators (``"？！"``) closes a single unit.  Whatever follows the last
    terminator becomes the final unit, so ``"".join(units) == paragraph``.
    """
    units: list[str] = []
    start = 0
    for i, ch in enumerate(paragraph):
        if ch not in SENTENCE_TERMINATORS:
            continue
        nxt = paragraph[i + 1] if i + 1 < len(paragraph) else ""
        if nxt and nxt in SENTENCE_TERMINATORS:
            continue
        units.append(paragraph[start : i + 1])
        start = i + 1
    if start < len(paragraph):
        units.append(paragraph[start:])
    return units


@dataclass(frozen=True)
class RollbackBuffer:
    """Units waiting to be flushed, with their cached token counts.

    The buffer is immutable; :meth:`push` and :meth:`overflow` return new
    buffers so each transition can be tested on its own.
    """

    units: tuple[str, ...] = ()
    counts: tuple[int, ...] = ()

    @property
    def tokens(self) -> int:
        return sum(self.counts)

    def __len__(self) -> int:
        return len(self.units)

    def push(self, unit: str) -> RollbackBuffer:
        return RollbackBuffer(self.units + (unit,), self.counts + (estimate_tokens(unit),))

    def overflow(self, target_tokens: int) -> tuple[str, RollbackBuffer]:
        """Roll tail units back until the head fits *target_tokens*.

        Units are popped from the tail while the head still exceeds
        *target_tokens*, but the first unit is never popped.

        Returns
        -------
        tuple[str, RollbackBuffer]
            The flushed head as one chunk, and a buffer holding the popped
            units in their original order.
        """
        keep = len(self.units)
        tokens = self.tokens
        while tokens > target_tokens and keep > 1:
            keep -= 1
            tokens -= self.counts[keep]
        rest = RollbackBuffer(self.units[keep:], self.counts[keep:])
        return "".join(self.units[:keep]), rest

    def flush(self) -> str:
        return "".join(self.units)


def chunk_text(text: str, target_tokens: int, max_tokens: int) -> list[str]:
    """Split *text* into sentence-aligned chunks of at most *max_tokens*.

    Parameters
    ----------
    text:
        Plain text of one case; line breaks delimit paragraphs.
    target_tokens:
        Size the head of an overflowing chunk is rolled back to.
    max_tokens:
        Ceiling for any chunk made of more than one sentence unit.  A single
        unit longer than this is emitted alone rather than split.

    Returns
    -------
    list[str]
        Chunks in document order; joined they equal the paragraphs of
        *text* concatenated without line breaks.
    """
    if target_tokens <= 0 or max_tokens <= 0:
        raise ValueError("token budgets must be positive")
    if target_tokens > max_tokens:
        raise ValueError(
            f"target_tokens ({target_tokens}) must be <= max_tokens ({max_tokens})"
        )

    chunks: list[str] = []
    buffer = RollbackBuffer()
    for paragraph in split_paragraphs(text):
        for unit in split_sentences(paragraph):
            buffer = buffer.push(unit)
            # The rolled-back tail may itself be over the ceiling.
            while buffer.tokens > max_tokens:
                chunk, buffer = buffer.overflow(target_tokens)
                chunks.append(chunk)
    if buffer:
        chunks.append(buffer.flush())
    return chunks

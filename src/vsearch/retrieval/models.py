"""Point identifiers and search result models."""

from __future__ import annotations

from pydantic import BaseModel

_CHUNK_BITS = 32
_CHUNK_MASK = (1 << _CHUNK_BITS) - 1


def point_id(case_id: int, chunk_index: int | None = None) -> int:
    """Return the vector-index id for a case, or for one chunk of it.

    A whole case uses its own id.  A chunk uses ``(case_id << 32) | chunk_index``,
    which is always above the 32-bit case-id range for ``case_id >= 1``.
    """
    if chunk_index is None:
        return case_id
    return (case_id << _CHUNK_BITS) | chunk_index


def split_point_id(pid: int) -> tuple[int, int | None]:
    """Inverse of :func:`point_id`."""
    if pid <= _CHUNK_MASK:
        return pid, None
    return pid >> _CHUNK_BITS, pid & _CHUNK_MASK


class SearchHit(BaseModel):
    """One case (or case chunk) returned by a similarity search."""

    case_id: int
    chunk_index: int | None = None
    score: float
    case_name: str | None = None

    def __str__(self) -> str:  # noqa: D105
        ref = str(self.case_id) if self.chunk_index is None else f"{self.case_id}#{self.chunk_index}"
        name = f" {self.case_name}" if self.case_name else ""
        return f"{ref}\t{self.score:.4f}{name}"

"""Error types raised by the ingestion and search layers.

Every fatal condition derives from :class:`VsearchError` so the CLI can
report it and exit non-zero in one place.  Skipped cases (wrong category,
empty text) are not errors and never raise.
"""

from __future__ import annotations


class VsearchError(Exception):
    """Base class for all fatal pipeline errors."""


class DecodeError(VsearchError):
    """Stored bytes (or an imported record) do not deserialize into a case."""


class EmbeddingCallError(VsearchError):
    """The embedding model failed for a whole batch."""


class UploadError(VsearchError):
    """The vector index rejected or failed an upsert."""


class DimensionMismatch(VsearchError, ValueError):
    """Embedding vectors of one case disagree on their dimension."""

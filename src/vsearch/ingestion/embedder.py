"""Embedding model adapter and multi-chunk aggregation."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol

import numpy as np

from vsearch.exceptions import DimensionMismatch, EmbeddingCallError

logger = logging.getLogger(__name__)


class Embedder(Protocol):
    """Anything that maps a batch of texts to vectors in the same order."""

    def embed(self, texts: list[str]) -> list[list[float]]: ...

    def embed_query(self, text: str) -> list[float]: ...


class HuggingFaceEmbedder:
    """Sentence-transformer embedder backed by ``HuggingFaceEmbeddings``.

    Parameters
    ----------
    model_name:
        HuggingFace model id, e.g. ``"BAAI/bge-small-zh-v1.5"``.
    batch_size:
        Forward-pass batch size handed to sentence-transformers.
    normalize_embeddings:
        Whether the model L2-normalises each vector.
    """

    def __init__(
        self,
        model_name: str,
        *,
        batch_size: int = 64,
        normalize_embeddings: bool = True,
    ) -> None:
        from langchain_huggingface import HuggingFaceEmbeddings

        self.model_name = model_name
        logger.info("Loading embedding model %s", model_name)
        self._model = HuggingFaceEmbeddings(
            model_name=model_name,
            encode_kwargs={
                "batch_size": batch_size,
                "normalize_embeddings": normalize_embeddings,
            },
        )

    def embed(self, texts: list[str]) -> list[list[float]]:
        """Embed *texts*; the call succeeds or fails as a whole."""
        try:
            vectors = self._model.embed_documents(texts)
        except Exception as exc:
            raise EmbeddingCallError(
                f"embedding {len(texts)} texts with {self.model_name} failed: {exc}"
            ) from exc
        if len(vectors) != len(texts):
            raise EmbeddingCallError(
                f"model returned {len(vectors)} vectors for {len(texts)} texts"
            )
        return vectors

    def embed_query(self, text: str) -> list[float]:
        try:
            return self._model.embed_query(text)
        except Exception as exc:
            raise EmbeddingCallError(f"embedding query with {self.model_name} failed: {exc}") from exc


def aggregate_embeddings(
    embeddings: Sequence[Sequence[float]],
    lengths: Sequence[int],
) -> list[float]:
    """Merge per-chunk vectors of one case into a single unit vector.

    Each chunk's vector is weighted by its character length, the weighted
    mean is taken, and the result is L2-normalised.  A zero mean is returned
    unchanged.

    Raises
    ------
    DimensionMismatch
        If the vectors do not all have the same dimension.
    ValueError
        If the inputs are empty, of unequal count, or the lengths do not
        sum to a positive total.
    """
    if not embeddings:
        raise ValueError("cannot aggregate an empty list of embeddings")
    if len(embeddings) != len(lengths):
        raise ValueError(
            f"got {len(embeddings)} embeddings but {len(lengths)} lengths"
        )
    dims = {len(e) for e in embeddings}
    if len(dims) != 1:
        raise DimensionMismatch(f"embedding dimensions differ: {sorted(dims)}")

    weights = np.asarray(lengths, dtype=np.float64)
    total = weights.sum()
    if total <= 0:
        raise ValueError("chunk lengths must sum to a positive value")

    matrix = np.asarray(embeddings, dtype=np.float64)
    mean = weights @ matrix / total
    norm = np.linalg.norm(mean)
    if norm > 0:
        mean = mean / norm
    return mean.tolist()

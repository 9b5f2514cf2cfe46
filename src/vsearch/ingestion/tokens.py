"""Cheap token-count estimate for the embedding model's input limit."""

from __future__ import annotations

import math

# ASCII characters per estimated token.
ASCII_RUN = 3


def estimate_tokens(text: str) -> int:
    """Estimate how many model tokens *text* costs without running a tokenizer.

    Every non-ASCII character (CJK ideographs, full-width punctuation) counts
    as one token.  ASCII characters are counted in runs: each started group of
    ``ASCII_RUN`` characters is one token, so ``"abcd"`` costs 2.  A non-ASCII
    character closes the current run.

    >>> estimate_tokens("ab汉")
    2
    """
    tokens = 0
    run = 0
    for ch in text:
        if ch.isascii():
            run += 1
            continue
        tokens += math.ceil(run / ASCII_RUN) + 1
        run = 0
    return tokens + math.ceil(run / ASCII_RUN)

"""Join step of the level-wise search: size-``k`` frequent itemsets to size-``k + 1`` candidates."""

from __future__ import annotations

from collections.abc import Iterator

import numpy as np

from . import itemset as bits


def _pair_chunks(n: int, max_pairs: int) -> Iterator[tuple[np.ndarray, np.ndarray]]:
    """Yield the unordered pairs ``i < j`` of ``range(n)`` in blocks of whole rows ``i``."""
    start = 0
    while start < n - 1:
        # rows start..stop-1 pair with everything after them
        stop = start + 1
        n_pairs = n - 1 - start
        while stop < n - 1 and n_pairs + (n - 1 - stop) <= max_pairs:
            n_pairs += n - 1 - stop
            stop += 1
        left = np.repeat(np.arange(start, stop), n - 1 - np.arange(start, stop))
        right = np.concatenate([np.arange(i + 1, n) for i in range(start, stop)])
        yield left, right
        start = stop


def generate_candidates(
    level_words: np.ndarray,
    level: int,
    chunk_size: int = 1_000_000,
) -> tuple[np.ndarray, np.ndarray]:
    """Build the distinct size-``level + 1`` unions of pairs of size-``level`` itemsets.

    Two itemsets join when they share exactly ``level - 1`` items, which is
    the same as their union having ``level + 1`` items.

    Parameters
    ----------
    level_words : numpy.ndarray
        ``(n, n_words)`` rows of distinct frequent itemsets of cardinality *level*.
    level : int
        Cardinality ``k >= 1`` of the input itemsets.
    chunk_size : int, default=1_000_000
        Maximum number of words materialised per block of pairs.

    Returns
    -------
    tuple[numpy.ndarray, numpy.ndarray]
        Candidate rows and their hashes, duplicates removed.
    """
    n, width = level_words.shape
    if n < 2:
        return level_words[:0].copy(), np.empty(0, dtype=np.int64)

    max_pairs = max(1, chunk_size // max(width, 1))
    parts: list[np.ndarray] = []
    for left, right in _pair_chunks(n, max_pairs):
        unions = bits.union(level_words[left], level_words[right])
        unions = unions[bits.cardinality(unions) == level + 1]
        if len(unions):
            # same union from several pairs collapses per block before the global pass
            parts.append(bits.deduplicate(unions)[0])

    if not parts:
        return level_words[:0].copy(), np.empty(0, dtype=np.int64)
    return bits.deduplicate(np.concatenate(parts))

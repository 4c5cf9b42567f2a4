"""Downward-closure check: every size-``k`` subset of a candidate must be frequent."""

from __future__ import annotations

import numpy as np

from . import itemset as bits
from .store import FrequentLevel


def one_removed_subsets(candidates: np.ndarray, n_items: int) -> tuple[np.ndarray, np.ndarray]:
    """All subsets obtained by clearing one set bit of each candidate.

    Returns
    -------
    tuple[numpy.ndarray, numpy.ndarray]
        ``(owner, subsets)`` where ``owner[s]`` is the candidate row that
        subset ``s`` came from.  Subsets of a candidate are contiguous.
    """
    owner, col = np.nonzero(bits.unpack(candidates, n_items))
    subsets = candidates[owner].copy()
    words = col // bits.WORD_BITS
    masks = np.left_shift(np.uint64(1), (col % bits.WORD_BITS).astype(np.uint64))
    subsets[np.arange(len(owner)), words] &= np.invert(masks)
    return owner, subsets


def prune_candidates(
    candidates: np.ndarray,
    frequent: FrequentLevel,
    n_items: int,
    hashes: np.ndarray | None = None,
) -> tuple[np.ndarray, np.ndarray]:
    """Keep the candidates whose every one-removed subset is in *frequent*.

    A subset that cannot be confirmed by exact equality counts as missing,
    so lookups fail closed.

    Parameters
    ----------
    candidates : numpy.ndarray
        ``(n, n_words)`` candidate rows of cardinality ``frequent.level + 1``.
    frequent : FrequentLevel
        The complete level ``k`` of the store.
    n_items : int
        Size of the item domain.
    hashes : numpy.ndarray | None
        Candidate hashes, carried through to the survivors.

    Returns
    -------
    tuple[numpy.ndarray, numpy.ndarray]
        Surviving candidate rows and their hashes.
    """
    if hashes is None:
        hashes = bits.itemset_hash(candidates)
    if len(candidates) == 0:
        return candidates, hashes

    owner, subsets = one_removed_subsets(candidates, n_items)
    confirmed = frequent.lookup(subsets) >= 0

    sizes = np.bincount(owner, minlength=len(candidates))
    hits = np.bincount(owner, weights=confirmed.astype(np.float64), minlength=len(candidates))
    keep = (hits == sizes) & (sizes == frequent.level + 1)
    return candidates[keep], hashes[keep]

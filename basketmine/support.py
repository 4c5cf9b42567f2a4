"""Support counting: one scan of the transaction table per block of candidates."""

from __future__ import annotations

import numpy as np

from . import itemset as bits


def count_support(
    candidates: np.ndarray,
    transactions: np.ndarray,
    chunk_size: int = 1_000_000,
) -> np.ndarray:
    """Number of transactions that contain each candidate.

    Parameters
    ----------
    candidates : numpy.ndarray
        ``(n_candidates, n_words)`` itemset rows.
    transactions : numpy.ndarray
        ``(n_transactions, n_words)`` transaction rows over the same domain.
    chunk_size : int, default=1_000_000
        Upper bound on the words compared in one vectorised step.

    Returns
    -------
    numpy.ndarray
        ``int64`` counts aligned with *candidates*.
    """
    n_cand, width = candidates.shape
    counts = np.zeros(n_cand, dtype=np.int64)
    if n_cand == 0 or len(transactions) == 0:
        return counts

    per_step = max(1, chunk_size // max(width, 1))
    txn_block = max(1, min(len(transactions), per_step))
    cand_block = max(1, per_step // txn_block)

    for c0 in range(0, n_cand, cand_block):
        cand = candidates[c0 : c0 + cand_block]
        for t0 in range(0, len(transactions), txn_block):
            txn = transactions[t0 : t0 + txn_block]
            contained = bits.is_superset(txn[:, None, :], cand[None, :, :])
            counts[c0 : c0 + cand_block] += contained.sum(axis=0)
    return counts


def support_from_counts(counts: np.ndarray, n_transactions: int) -> np.ndarray:
    return np.asarray(counts, dtype=np.int64) / n_transactions

"""Bit-packed itemset encoding over a fixed item domain ``[1, m]``.

Itemsets are stored as rows of little-endian ``uint64`` words: item ``i``
occupies bit ``i - 1``.  A collection of ``n`` itemsets over ``m`` items is a
``(n, ceil(m / 64))`` array, so every set operation below is vectorised over
rows.  Single itemsets are also exposed as the immutable :class:`Itemset`.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any

import numpy as np

from ._validation import MiningConfigError

WORD = np.dtype("<u8")
WORD_BITS = 64

_POPCOUNT8 = np.array([bin(i).count("1") for i in range(256)], dtype=np.uint8)

# splitmix64 constants
_GOLDEN = np.uint64(0x9E3779B97F4A7C15)
_MIX1 = np.uint64(0xBF58476D1CE4E5B9)
_MIX2 = np.uint64(0x94D049BB133111EB)


def n_words(n_items: int) -> int:
    """Number of 64-bit words needed for a domain of *n_items* items."""
    if n_items < 1:
        raise MiningConfigError(f"The item domain must contain at least one item, got {n_items}.")
    return (n_items + WORD_BITS - 1) // WORD_BITS


def empty(n: int, n_items: int) -> np.ndarray:
    return np.zeros((n, n_words(n_items)), dtype=WORD)


def pack(positions: Iterable[int], n_items: int) -> np.ndarray:
    """Encode one set of 1-based item ids as a 1-D word vector."""
    pos = np.fromiter((int(p) for p in positions), dtype=np.int64)
    if pos.size and (pos.min() < 1 or pos.max() > n_items):
        raise MiningConfigError(f"Item ids must lie in [1, {n_items}], got {sorted(set(pos.tolist()))}.")
    words = np.zeros(n_words(n_items), dtype=WORD)
    bits = pos - 1
    np.bitwise_or.at(words, bits // WORD_BITS, np.left_shift(np.uint64(1), (bits % WORD_BITS).astype(np.uint64)))
    return words


def pack_rows(rows: np.ndarray, items: np.ndarray, n_rows: int, n_items: int) -> np.ndarray:
    """Scatter ``(row, item)`` coordinates into an ``(n_rows, n_words)`` matrix.

    *items* are 1-based ids; duplicate coordinates are harmless.
    """
    out = empty(n_rows, n_items)
    bits = np.asarray(items, dtype=np.int64) - 1
    masks = np.left_shift(np.uint64(1), (bits % WORD_BITS).astype(np.uint64))
    np.bitwise_or.at(out, (np.asarray(rows, dtype=np.int64), bits // WORD_BITS), masks)
    return out


def unpack(words: np.ndarray, n_items: int) -> np.ndarray:
    """Expand word rows back to a boolean ``(n, n_items)`` membership matrix."""
    words = np.ascontiguousarray(np.atleast_2d(words), dtype=WORD)
    bits = np.unpackbits(words.view(np.uint8), axis=1, bitorder="little")
    return bits[:, :n_items].astype(bool)


def positions(words: np.ndarray) -> np.ndarray:
    """1-based item ids set in a single word vector, ascending."""
    words = np.ascontiguousarray(words, dtype=WORD).reshape(-1)
    bits = np.unpackbits(words.view(np.uint8), bitorder="little")
    return np.flatnonzero(bits) + 1


def _check_domain(a: np.ndarray, b: np.ndarray) -> None:
    if a.shape[-1] != b.shape[-1]:
        raise MiningConfigError(
            f"Itemsets encoded over different item domains ({a.shape[-1]} vs {b.shape[-1]} words)."
        )


def union(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    _check_domain(a, b)
    return np.bitwise_or(a, b)


def intersection(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    _check_domain(a, b)
    return np.bitwise_and(a, b)


def set_minus(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    _check_domain(a, b)
    return np.bitwise_and(a, np.invert(b))


def is_superset(t: np.ndarray, s: np.ndarray) -> np.ndarray:
    """True where every bit set in *s* is also set in *t* (broadcasts over leading axes)."""
    _check_domain(t, s)
    return np.all(np.bitwise_and(t, s) == s, axis=-1)


def cardinality(words: np.ndarray) -> np.ndarray:
    """Population count of each itemset (reduces the last axis)."""
    words = np.ascontiguousarray(words, dtype=WORD)
    as_bytes = words.view(np.uint8).reshape(*words.shape[:-1], -1)
    return _POPCOUNT8[as_bytes].sum(axis=-1, dtype=np.int64)


def itemset_hash(words: np.ndarray) -> np.ndarray:
    """Deterministic 64-bit hash of each row, returned as ``int64``.

    The hash is a grouping aid only; equal hashes never imply equal itemsets.
    """
    words = np.ascontiguousarray(np.atleast_2d(words), dtype=WORD)
    h = np.full(words.shape[0], np.uint64(words.shape[1]), dtype=np.uint64)
    with np.errstate(over="ignore"):
        for j in range(words.shape[1]):
            h = (h ^ words[:, j]) * _GOLDEN
            h ^= h >> np.uint64(30)
            h *= _MIX1
            h ^= h >> np.uint64(27)
            h *= _MIX2
            h ^= h >> np.uint64(31)
    return h.view(np.int64)


def sort_order(words: np.ndarray, hashes: np.ndarray | None = None) -> np.ndarray:
    """Row order sorting by hash first, then by every word."""
    if hashes is None:
        hashes = itemset_hash(words)
    keys = [words[:, j] for j in range(words.shape[1] - 1, -1, -1)]
    keys.append(hashes)
    return np.lexsort(keys)


def deduplicate(words: np.ndarray, hashes: np.ndarray | None = None) -> tuple[np.ndarray, np.ndarray]:
    """Drop duplicate rows.

    Rows are partitioned by hash and compared word by word inside each
    partition, so colliding hashes of distinct itemsets are kept apart.

    Returns
    -------
    tuple[numpy.ndarray, numpy.ndarray]
        The distinct rows and their hashes, in ``(hash, words)`` order.
    """
    if hashes is None:
        hashes = itemset_hash(words)
    if len(words) == 0:
        return words, hashes
    order = sort_order(words, hashes)
    words = words[order]
    hashes = hashes[order]
    keep = np.ones(len(words), dtype=bool)
    keep[1:] = (hashes[1:] != hashes[:-1]) | np.any(words[1:] != words[:-1], axis=1)
    return words[keep], hashes[keep]


class Itemset:
    """An immutable set of 1-based item ids over a fixed domain of ``n_items`` items.

    Equality compares the bit pattern exactly; :meth:`canonical_hash` is only
    used to bucket itemsets.
    """

    __slots__ = ("_words", "_hash", "n_items")

    def __init__(self, items: Iterable[int], n_items: int) -> None:
        self.n_items = n_items
        self._words = pack(items, n_items)
        self._words.flags.writeable = False
        self._hash = int(itemset_hash(self._words)[0])

    @classmethod
    def from_words(cls, words: np.ndarray, n_items: int) -> Itemset:
        words = np.ascontiguousarray(words, dtype=WORD).reshape(-1)
        if words.shape[0] != n_words(n_items):
            raise MiningConfigError(
                f"Expected {n_words(n_items)} words for a domain of {n_items} items, got {words.shape[0]}."
            )
        if len(words) and positions(words).max(initial=0) > n_items:
            raise MiningConfigError(f"Word vector sets bits beyond item {n_items}.")
        obj = cls.__new__(cls)
        obj.n_items = n_items
        obj._words = words.copy()
        obj._words.flags.writeable = False
        obj._hash = int(itemset_hash(obj._words)[0])
        return obj

    @property
    def words(self) -> np.ndarray:
        return self._words

    @property
    def items(self) -> tuple[int, ...]:
        return tuple(int(i) for i in positions(self._words))

    def canonical_hash(self) -> int:
        return self._hash

    def _coerce(self, other: Any) -> Itemset:
        if not isinstance(other, Itemset):
            raise TypeError(f"Expected an Itemset, got {type(other).__name__}")
        if other.n_items != self.n_items:
            raise MiningConfigError(
                f"Itemsets encoded over different item domains ({self.n_items} vs {other.n_items} items)."
            )
        return other

    def union(self, other: Itemset) -> Itemset:
        return Itemset.from_words(union(self._words, self._coerce(other)._words), self.n_items)

    def intersection(self, other: Itemset) -> Itemset:
        return Itemset.from_words(intersection(self._words, self._coerce(other)._words), self.n_items)

    def set_minus(self, other: Itemset) -> Itemset:
        return Itemset.from_words(set_minus(self._words, self._coerce(other)._words), self.n_items)

    def is_superset(self, other: Itemset) -> bool:
        return bool(is_superset(self._words, self._coerce(other)._words))

    __or__ = union
    __and__ = intersection
    __sub__ = set_minus

    def __ge__(self, other: Itemset) -> bool:
        return self.is_superset(other)

    def __le__(self, other: Itemset) -> bool:
        return self._coerce(other).is_superset(self)

    def __len__(self) -> int:
        return int(cardinality(self._words))

    def __iter__(self) -> Iterator[int]:
        return iter(self.items)

    def __contains__(self, item: object) -> bool:
        if not isinstance(item, (int, np.integer)) or not 1 <= int(item) <= self.n_items:
            return False
        bit = int(item) - 1
        return bool((int(self._words[bit // WORD_BITS]) >> (bit % WORD_BITS)) & 1)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Itemset):
            return NotImplemented
        return (
            self.n_items == other.n_items
            and self._hash == other._hash
            and bool(np.array_equal(self._words, other._words))
        )

    def __hash__(self) -> int:
        return self._hash

    def __repr__(self) -> str:
        return f"Itemset({list(self.items)}, n_items={self.n_items})"

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
import pandas as pd

from . import itemset as bits

if TYPE_CHECKING:
    from .dictionary import ItemDictionary


@dataclass(frozen=True)
class FrequentLevel:
    """All frequent itemsets of one cardinality.

    Rows are kept in ``(hash, words)`` order and every array is read-only.
    """

    level: int
    words: np.ndarray
    counts: np.ndarray
    supports: np.ndarray
    hashes: np.ndarray

    def __post_init__(self) -> None:
        for arr in (self.words, self.counts, self.supports, self.hashes):
            arr.flags.writeable = False

    @classmethod
    def build(cls, level: int, words: np.ndarray, counts: np.ndarray, n_transactions: int) -> FrequentLevel:
        hashes = bits.itemset_hash(words)
        order = bits.sort_order(words, hashes)
        counts = np.asarray(counts, dtype=np.int64)[order]
        return cls(
            level=level,
            words=np.ascontiguousarray(words[order]),
            counts=counts,
            supports=counts / n_transactions,
            hashes=hashes[order],
        )

    def __len__(self) -> int:
        return int(self.words.shape[0])

    def lookup(self, words: np.ndarray, hashes: np.ndarray | None = None) -> np.ndarray:
        """Row index of each query itemset in this level, ``-1`` when absent.

        Queries are joined to the level on hash and each hit is confirmed by
        exact bit equality.
        """
        words = np.atleast_2d(words)
        found = np.full(len(words), -1, dtype=np.int64)
        if len(words) == 0 or len(self) == 0:
            return found
        if hashes is None:
            hashes = bits.itemset_hash(words)

        queries = pd.DataFrame({"hash": hashes, "query": np.arange(len(words))})
        stored = pd.DataFrame({"hash": self.hashes, "row": np.arange(len(self))})
        joined = queries.merge(stored, on="hash", how="inner")
        if joined.empty:
            return found

        q = joined["query"].to_numpy()
        r = joined["row"].to_numpy()
        exact = np.all(words[q] == self.words[r], axis=1)
        found[q[exact]] = r[exact]
        return found


class FrequentItemsetStore:
    """Append-only collection of frequent itemsets, partitioned by level.

    Level ``k`` can only be added once level ``k - 1`` is present.
    """

    def __init__(self, n_items: int, n_transactions: int) -> None:
        self.n_items = n_items
        self.n_transactions = n_transactions
        self._levels: list[FrequentLevel] = []

    def add_level(self, level: FrequentLevel) -> None:
        expected = len(self._levels) + 1
        if level.level != expected:
            raise ValueError(f"Levels must be appended in order: expected level {expected}, got {level.level}.")
        if len(level) and level.words.shape[1] != bits.n_words(self.n_items):
            raise ValueError("Level words do not match the store's item domain.")
        self._levels.append(level)

    @property
    def max_level(self) -> int:
        return len(self._levels)

    def level(self, k: int) -> FrequentLevel:
        if not 1 <= k <= len(self._levels):
            raise KeyError(f"Level {k} is not in the store (levels 1..{len(self._levels)}).")
        return self._levels[k - 1]

    def levels(self) -> Iterator[FrequentLevel]:
        return iter(self._levels)

    def lookup(self, k: int, words: np.ndarray) -> np.ndarray:
        """Row indices of *words* in level *k* (``-1`` when absent or the level does not exist)."""
        words = np.atleast_2d(words)
        if not 1 <= k <= len(self._levels):
            return np.full(len(words), -1, dtype=np.int64)
        return self._levels[k - 1].lookup(words)

    def support_of(self, itemset: bits.Itemset) -> float | None:
        """Support of *itemset*, or ``None`` if it is not frequent."""
        k = len(itemset)
        row = int(self.lookup(k, itemset.words)[0])
        if row < 0:
            return None
        return float(self.level(k).supports[row])

    def __contains__(self, itemset: object) -> bool:
        if not isinstance(itemset, bits.Itemset):
            return False
        return self.support_of(itemset) is not None

    def itemsets(self) -> Iterator[tuple[bits.Itemset, float, int]]:
        """Yield ``(itemset, support, level)`` for every stored itemset."""
        for lvl in self._levels:
            for row in range(len(lvl)):
                yield bits.Itemset.from_words(lvl.words[row], self.n_items), float(lvl.supports[row]), lvl.level

    def __len__(self) -> int:
        return sum(len(lvl) for lvl in self._levels)

    def to_frame(self, dictionary: ItemDictionary | None = None) -> pd.DataFrame:
        """One row per frequent itemset with columns ``itemsets``, ``support``, ``count`` and ``level``.

        ``itemsets`` holds frozensets of labels when *dictionary* is given,
        frozensets of item ids otherwise.
        """
        columns = ["itemsets", "support", "count", "level"]
        if len(self) == 0:
            return pd.DataFrame(columns=pd.Index(columns))

        itemsets: list[frozenset] = []
        for lvl in self._levels:
            member = bits.unpack(lvl.words, self.n_items)
            for row in member:
                ids = (np.flatnonzero(row) + 1).tolist()
                itemsets.append(frozenset(dictionary.labels(ids) if dictionary is not None else ids))

        return pd.DataFrame(
            {
                "itemsets": itemsets,
                "support": np.concatenate([lvl.supports for lvl in self._levels]),
                "count": np.concatenate([lvl.counts for lvl in self._levels]),
                "level": np.concatenate([np.full(len(lvl), lvl.level, dtype=np.int64) for lvl in self._levels]),
            },
            columns=columns,
        )

    def __repr__(self) -> str:
        sizes = ", ".join(f"{lvl.level}: {len(lvl)}" for lvl in self._levels)
        return f"FrequentItemsetStore({{{sizes}}})"

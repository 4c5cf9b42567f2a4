from __future__ import annotations

from collections.abc import Hashable, Iterable, Sequence
from typing import Any

import numpy as np
import pandas as pd

from ._validation import MiningConfigError


class ItemDictionary:
    """Bijection between arbitrary item labels and the dense id range ``[1, m]``.

    Ids are handed out contiguously starting at 1 and never change for the
    lifetime of the dictionary.

    Examples
    --------
    >>> d = ItemDictionary()
    >>> d.assign("milk"), d.assign("bread"), d.assign("milk")
    (1, 2, 1)
    >>> d.label(2)
    'bread'
    """

    def __init__(self, labels: Iterable[Hashable] = ()) -> None:
        self._labels: list[Any] = []
        self._ids: dict[Any, int] = {}
        for label in labels:
            self.assign(label)

    @classmethod
    def from_series(cls, items: pd.Series) -> tuple[ItemDictionary, np.ndarray]:
        """Build a dictionary from an item column and return the dense id of every row.

        Labels are numbered in sorted order when they are mutually comparable,
        otherwise in order of first appearance.
        """
        try:
            codes, uniques = pd.factorize(items, sort=True)
        except TypeError:
            codes, uniques = pd.factorize(items, sort=False)
        if (codes < 0).any():
            raise MiningConfigError("Item labels must not be null.")
        dictionary = cls(uniques.tolist() if hasattr(uniques, "tolist") else list(uniques))
        if len(dictionary) != len(uniques):
            # e.g. 1 and True hash equal in Python but factorize apart
            raise MiningConfigError("Item labels collide when used as dictionary keys (e.g. 1 and True).")
        return dictionary, codes.astype(np.int64) + 1

    def assign(self, label: Hashable) -> int:
        """Return the id of *label*, allocating the next free id if it is new."""
        if label is None or (isinstance(label, float) and np.isnan(label)):
            raise MiningConfigError("Item labels must not be null.")
        item_id = self._ids.get(label)
        if item_id is None:
            self._labels.append(label)
            item_id = len(self._labels)
            self._ids[label] = item_id
        return item_id

    def id_of(self, label: Hashable) -> int:
        try:
            return self._ids[label]
        except KeyError:
            raise KeyError(f"Unknown item label: {label!r}") from None

    def label(self, item_id: int) -> Any:
        if not 1 <= item_id <= len(self._labels):
            raise KeyError(f"Item id {item_id} outside [1, {len(self._labels)}]")
        return self._labels[item_id - 1]

    def labels(self, item_ids: Iterable[int]) -> tuple[Any, ...]:
        return tuple(self.label(int(i)) for i in item_ids)

    def ids(self, labels: Iterable[Hashable]) -> tuple[int, ...]:
        return tuple(self.id_of(label) for label in labels)

    @property
    def all_labels(self) -> Sequence[Any]:
        return tuple(self._labels)

    def __len__(self) -> int:
        return len(self._labels)

    def __contains__(self, label: object) -> bool:
        try:
            return label in self._ids
        except TypeError:
            return False

    def __repr__(self) -> str:
        return f"ItemDictionary(n_items={len(self)})"

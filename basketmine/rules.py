from __future__ import annotations

import time
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np
import pandas as pd

from . import itemset as bits
from ._validation import check_fraction, check_optional_cap
from .diagnostics import RulesGenerated, Sink
from .store import FrequentItemsetStore

if TYPE_CHECKING:
    from .dictionary import ItemDictionary

RULE_COLUMNS = [
    "rule_id",
    "antecedents",
    "consequents",
    "count",
    "support",
    "confidence",
    "lift",
    "conviction",
]


@dataclass(frozen=True)
class RuleSet:
    """Column-oriented association rules over item ids.

    ``antecedents`` and ``consequents`` are ``(n_rules, n_words)`` bit rows;
    the metric arrays are aligned with them.  ``rule_id`` runs from 1 in
    emission order.
    """

    n_items: int
    rule_id: np.ndarray
    antecedents: np.ndarray
    consequents: np.ndarray
    count: np.ndarray
    support: np.ndarray
    confidence: np.ndarray
    lift: np.ndarray
    conviction: np.ndarray

    def __len__(self) -> int:
        return int(self.rule_id.shape[0])

    def rows(self) -> Iterator[tuple[int, tuple[int, ...], tuple[int, ...], int, float, float, float, float]]:
        """Yield ``(rule_id, antecedent ids, consequent ids, count, support, confidence, lift, conviction)``."""
        ante = bits.unpack(self.antecedents, self.n_items)
        cons = bits.unpack(self.consequents, self.n_items)
        for i in range(len(self)):
            yield (
                int(self.rule_id[i]),
                tuple((np.flatnonzero(ante[i]) + 1).tolist()),
                tuple((np.flatnonzero(cons[i]) + 1).tolist()),
                int(self.count[i]),
                float(self.support[i]),
                float(self.confidence[i]),
                float(self.lift[i]),
                float(self.conviction[i]),
            )

    def to_frame(self, dictionary: ItemDictionary | None = None) -> pd.DataFrame:
        """Rules as a DataFrame; antecedents / consequents become frozensets of labels (or ids)."""
        if len(self) == 0:
            return pd.DataFrame(columns=pd.Index(RULE_COLUMNS))

        def as_set(ids: tuple[int, ...]) -> frozenset[Any]:
            return frozenset(dictionary.labels(ids) if dictionary is not None else ids)

        records = [(rid, as_set(a), as_set(c), *metrics) for rid, a, c, *metrics in self.rows()]
        return pd.DataFrame.from_records(records, columns=RULE_COLUMNS)

    @classmethod
    def empty(cls, n_items: int) -> RuleSet:
        width = bits.n_words(n_items)
        return cls(
            n_items=n_items,
            rule_id=np.empty(0, dtype=np.int64),
            antecedents=np.empty((0, width), dtype=bits.WORD),
            consequents=np.empty((0, width), dtype=bits.WORD),
            count=np.empty(0, dtype=np.int64),
            support=np.empty(0, dtype=np.float64),
            confidence=np.empty(0, dtype=np.float64),
            lift=np.empty(0, dtype=np.float64),
            conviction=np.empty(0, dtype=np.float64),
        )


def _rules_for_levels(
    store: FrequentItemsetStore,
    a: int,
    b: int,
    min_confidence: float,
    chunk_size: int,
) -> dict[str, np.ndarray] | None:
    """Rules ``B => A \\ B`` with ``A`` from level *a* and ``B`` from level *b*."""
    lvl_a = store.level(a)
    lvl_b = store.level(b)
    if len(lvl_a) == 0 or len(lvl_b) == 0:
        return None

    width = lvl_a.words.shape[1]
    block = max(1, chunk_size // max(len(lvl_b) * width, 1))

    parts: list[dict[str, np.ndarray]] = []
    for start in range(0, len(lvl_a), block):
        rows_a = np.arange(start, min(start + block, len(lvl_a)))
        contains = bits.is_superset(lvl_a.words[rows_a][:, None, :], lvl_b.words[None, :, :])
        ia, ib = np.nonzero(contains)
        if len(ia) == 0:
            continue
        ia = rows_a[ia]

        count_a = lvl_a.counts[ia]
        count_b = lvl_b.counts[ib]
        confidence = count_a / count_b
        keep = confidence >= min_confidence
        if not keep.any():
            continue
        ia, ib, confidence = ia[keep], ib[keep], confidence[keep]

        consequents = bits.set_minus(lvl_a.words[ia], lvl_b.words[ib])
        rows_c = store.lookup(a - b, consequents)
        # consequent must be a stored frequent itemset to have a support
        found = rows_c >= 0
        if not found.any():
            continue
        ia, ib, confidence = ia[found], ib[found], confidence[found]
        consequents, rows_c = consequents[found], rows_c[found]

        support_a = lvl_a.supports[ia]
        support_b = lvl_b.supports[ib]
        support_c = store.level(a - b).supports[rows_c]
        exact = lvl_a.counts[ia] == lvl_b.counts[ib]

        parts.append(
            {
                "antecedents": lvl_b.words[ib],
                "consequents": consequents,
                "count": lvl_a.counts[ia],
                "support": support_a,
                "confidence": np.where(exact, 1.0, confidence),
                "lift": support_a / (support_b * support_c),
                "conviction": np.where(exact, 0.0, (1.0 - support_c) / np.where(exact, 1.0, 1.0 - confidence)),
            }
        )

    if not parts:
        return None
    return {key: np.concatenate([p[key] for p in parts]) for key in parts[0]}


def generate_rules(
    store: FrequentItemsetStore,
    min_confidence: float,
    max_lhs_size: int | None = None,
    max_rhs_size: int | None = None,
    chunk_size: int = 1_000_000,
    diagnostics: Sink | None = None,
) -> RuleSet:
    """Derive every confident rule ``B => A \\ B`` from the frequent itemset store.

    ``A`` ranges over itemsets of at least two items and ``B`` over the
    frequent proper subsets of ``A``.  A rule is kept when
    ``count(A) / count(B) >= min_confidence`` and its consequent is itself
    frequent.

    Parameters
    ----------
    store : FrequentItemsetStore
        The finished store of a mining run.
    min_confidence : float
        Minimum confidence within ``[0, 1]``.
    max_lhs_size, max_rhs_size : int | None
        Drop rules with a larger antecedent / consequent.
    chunk_size : int, default=1_000_000
        Upper bound on the words compared in one superset test.
    diagnostics : callable, optional
        Receives a :class:`~basketmine.diagnostics.RulesGenerated` event.

    Returns
    -------
    RuleSet
        Lift is ``support(A) / (support(B) * support(A \\ B))``; conviction is
        ``(1 - support(A \\ B)) / (1 - confidence)`` and 0 when confidence is 1.
    """
    min_confidence = check_fraction("min_confidence", min_confidence)
    max_lhs_size = check_optional_cap("max_lhs_size", max_lhs_size)
    max_rhs_size = check_optional_cap("max_rhs_size", max_rhs_size)

    t0 = time.perf_counter()
    parts: list[dict[str, np.ndarray]] = []
    for a in range(2, store.max_level + 1):
        for b in range(1, a):
            if max_lhs_size is not None and b > max_lhs_size:
                continue
            if max_rhs_size is not None and a - b > max_rhs_size:
                continue
            part = _rules_for_levels(store, a, b, min_confidence, chunk_size)
            if part is not None:
                parts.append(part)

    if parts:
        merged = {key: np.concatenate([p[key] for p in parts]) for key in parts[0]}
        rules = RuleSet(
            n_items=store.n_items,
            rule_id=np.arange(1, len(merged["count"]) + 1, dtype=np.int64),
            **merged,
        )
    else:
        rules = RuleSet.empty(store.n_items)

    if diagnostics is not None:
        diagnostics(RulesGenerated(n_rules=len(rules), seconds=time.perf_counter() - t0))
    return rules

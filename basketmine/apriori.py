from __future__ import annotations

import time
import warnings
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

import numpy as np

from . import itemset as bits
from ._validation import CandidateLimitError, check_fraction, check_optional_cap
from .candidates import generate_candidates
from .config import MiningConfig
from .diagnostics import (
    ItemsDiscovered,
    LevelCompleted,
    MiningTerminated,
    Sink,
    TransactionsDiscovered,
    build_sink,
)
from .pruning import prune_candidates
from .rules import RuleSet, generate_rules
from .store import FrequentItemsetStore, FrequentLevel
from .support import count_support, support_from_counts
from .transactions import TransactionStore, encode_transactions

if TYPE_CHECKING:
    import pandas as pd
    import polars as pl
    import pyarrow as pa

    from .dictionary import ItemDictionary

# rules() caps left at this value fall back to the constructor configuration
_FROM_CONFIG: Any = object()


def _frequent_mask(counts: np.ndarray, n_transactions: int, min_support: float) -> np.ndarray:
    # an itemset absent from every transaction is never frequent, even at min_support=0
    return (support_from_counts(counts, n_transactions) >= min_support) & (counts > 0)


def run_levelwise(
    transactions: TransactionStore,
    min_support: float,
    max_itemset_size: int | None = None,
    max_candidates: int | None = None,
    chunk_size: int = 1_000_000,
    diagnostics: Sink | None = None,
) -> tuple[FrequentItemsetStore, MiningTerminated]:
    """Breadth-first frequent itemset search.

    Level 1 is seeded from per-item transaction counts.  Each following
    level runs join, prune and count on the complete previous level and
    the search stops at the first level without a frequent itemset.

    Returns
    -------
    tuple[FrequentItemsetStore, MiningTerminated]
        The populated store and the event describing why the search stopped.
    """
    min_support = check_fraction("min_support", min_support)
    max_itemset_size = check_optional_cap("max_itemset_size", max_itemset_size)
    max_candidates = check_optional_cap("max_candidates", max_candidates)

    def emit(event: Any) -> None:
        if diagnostics is not None:
            diagnostics(event)

    n_items = transactions.n_items
    n_txn = transactions.n_transactions
    emit(ItemsDiscovered(n_items=n_items))
    emit(TransactionsDiscovered(n_transactions=n_txn))

    store = FrequentItemsetStore(n_items=n_items, n_transactions=n_txn)

    t0 = time.perf_counter()
    item_counts = transactions.item_counts[1:]
    frequent_ids = np.flatnonzero(_frequent_mask(item_counts, n_txn, min_support)) + 1
    seed = bits.pack_rows(np.arange(len(frequent_ids)), frequent_ids, len(frequent_ids), n_items)
    current = FrequentLevel.build(1, seed, item_counts[frequent_ids - 1], n_txn)
    emit(LevelCompleted(1, n_items, n_items, len(current), time.perf_counter() - t0))

    def stop(level: int, reason: str) -> tuple[FrequentItemsetStore, MiningTerminated]:
        event = MiningTerminated(level=level, reason=reason, n_frequent_itemsets=len(store))
        emit(event)
        return store, event

    if len(current) == 0:
        return stop(1, "no_frequent_items")
    store.add_level(current)

    k = 1
    while True:
        if max_itemset_size is not None and k >= max_itemset_size:
            if len(current) >= 2:
                warnings.warn(
                    f"Search stopped at max_itemset_size={max_itemset_size}; "
                    "longer frequent itemsets may exist.",
                    stacklevel=3,
                )
            return stop(k, "max_itemset_size")

        t0 = time.perf_counter()
        candidates, hashes = generate_candidates(current.words, k, chunk_size=chunk_size)
        n_candidates = len(candidates)
        if max_candidates is not None and n_candidates > max_candidates:
            raise CandidateLimitError(k + 1, n_candidates, max_candidates)

        survivors, hashes = prune_candidates(candidates, current, n_items, hashes=hashes)
        counts = count_support(survivors, transactions.words, chunk_size=chunk_size)
        keep = _frequent_mask(counts, n_txn, min_support)

        nxt = FrequentLevel.build(k + 1, survivors[keep], counts[keep], n_txn)
        emit(LevelCompleted(k + 1, n_candidates, len(survivors), len(nxt), time.perf_counter() - t0))

        if len(nxt) == 0:
            return stop(k + 1, "empty_level")
        store.add_level(nxt)
        current = nxt
        k += 1


class Apriori:
    """Level-wise (Apriori) frequent itemset and association rule miner.

    The search is breadth-first: size-``k + 1`` candidates are joined from
    the frequent size-``k`` itemsets, pruned when any size-``k`` subset is
    infrequent and then counted against every transaction.
    """

    def __init__(
        self,
        data: Any,
        min_support: float = 0.1,
        min_confidence: float = 0.5,
        transaction_col: str | None = None,
        item_col: str | None = None,
        max_itemset_size: int | None = None,
        max_lhs_size: int | None = None,
        max_rhs_size: int | None = None,
        max_candidates: int | None = None,
        chunk_size: int = 1_000_000,
        verbose: int = 0,
        diagnostics: Sink | Iterable[Sink] | None = None,
    ):
        """Initialize the miner.

        Parameters
        ----------
        data : pandas.DataFrame, polars.DataFrame, pyarrow.Table, TransactionStore or sequence of pairs
            Long-format ``(transaction id, item)`` rows, or an already encoded store.
        min_support : float, default=0.1
            The minimum support threshold `[0.0, 1.0]`. Calculates as a percentage of total transactions.
        min_confidence : float, default=0.5
            The minimum confidence of a rule `[0.0, 1.0]`.
        transaction_col, item_col : str | None
            Column names of the long-format input. Default to the first two columns.
        max_itemset_size : int | None, default=None
            Maximum length of the itemsets generated. If None, no limit is applied.
        max_lhs_size, max_rhs_size : int | None, default=None
            Maximum antecedent / consequent length of the rules.
        max_candidates : int | None, default=None
            Abort with ``CandidateLimitError`` when a level generates more candidates.
        chunk_size : int, default=1_000_000
            Bound on the words materialised per vectorised step.
        verbose : int, default=0
            If > 0, print progress details to standard output.
        diagnostics : callable or iterable of callables, optional
            Receive structured progress events.
        """
        self.config = MiningConfig(
            min_support=min_support,
            min_confidence=min_confidence,
            transaction_col=transaction_col,
            item_col=item_col,
            max_itemset_size=max_itemset_size,
            max_lhs_size=max_lhs_size,
            max_rhs_size=max_rhs_size,
            max_candidates=max_candidates,
            chunk_size=chunk_size,
            verbose=verbose,
        ).validate()
        self.data = data
        self.diagnostics = diagnostics

        self._transactions: TransactionStore | None = None
        self._store: FrequentItemsetStore | None = None
        self._termination: MiningTerminated | None = None
        self._rules: RuleSet | None = None

    @classmethod
    def from_transactions(
        cls,
        data: Any,
        transaction_col: str | None = None,
        item_col: str | None = None,
        verbose: int = 0,
        **kwargs: Any,
    ) -> Apriori:
        """Build a miner from long-format rows; extra keywords go to the constructor."""
        return cls(data, transaction_col=transaction_col, item_col=item_col, verbose=verbose, **kwargs)

    @classmethod
    def from_pandas(
        cls,
        df: pd.DataFrame,
        transaction_col: str | None = None,
        item_col: str | None = None,
        verbose: int = 0,
        **kwargs: Any,
    ) -> Apriori:
        return cls.from_transactions(df, transaction_col, item_col, verbose, **kwargs)

    @classmethod
    def from_polars(
        cls,
        df: pl.DataFrame,
        transaction_col: str | None = None,
        item_col: str | None = None,
        verbose: int = 0,
        **kwargs: Any,
    ) -> Apriori:
        return cls.from_transactions(df, transaction_col, item_col, verbose, **kwargs)

    @classmethod
    def from_arrow(
        cls,
        table: pa.Table,
        transaction_col: str | None = None,
        item_col: str | None = None,
        verbose: int = 0,
        **kwargs: Any,
    ) -> Apriori:
        return cls.from_transactions(table, transaction_col, item_col, verbose, **kwargs)

    @classmethod
    def from_spark(
        cls,
        df: Any,
        transaction_col: str | None = None,
        item_col: str | None = None,
        verbose: int = 0,
        **kwargs: Any,
    ) -> Apriori:
        """Any frame exposing ``toArrow()`` or ``toPandas()`` is accepted."""
        return cls.from_transactions(df, transaction_col, item_col, verbose, **kwargs)

    def _sink(self) -> Sink | None:
        return build_sink(self.diagnostics, self.config.verbose)

    def fit(self) -> Apriori:
        """Encode the input (once) and run the level-wise search."""
        cfg = self.config
        if self._transactions is None:
            if isinstance(self.data, TransactionStore):
                self._transactions = self.data
            else:
                self._transactions = encode_transactions(
                    self.data,
                    transaction_col=cfg.transaction_col,
                    item_col=cfg.item_col,
                    verbose=cfg.verbose,
                )
        self._store, self._termination = run_levelwise(
            self._transactions,
            cfg.min_support,
            max_itemset_size=cfg.max_itemset_size,
            max_candidates=cfg.max_candidates,
            chunk_size=cfg.chunk_size,
            diagnostics=self._sink(),
        )
        self._rules = None
        return self

    def _fitted_store(self) -> FrequentItemsetStore:
        if self._store is None:
            self.fit()
        assert self._store is not None
        return self._store

    @property
    def transactions(self) -> TransactionStore:
        self._fitted_store()
        assert self._transactions is not None
        return self._transactions

    @property
    def dictionary(self) -> ItemDictionary:
        return self.transactions.dictionary

    @property
    def store(self) -> FrequentItemsetStore:
        return self._fitted_store()

    @property
    def termination(self) -> MiningTerminated:
        self._fitted_store()
        assert self._termination is not None
        return self._termination

    def mine(self) -> pd.DataFrame:
        """Frequent itemsets with columns ``itemsets``, ``support``, ``count`` and ``level``."""
        return self.store.to_frame(self.dictionary)

    def rules(
        self,
        min_confidence: float | None = None,
        max_lhs_size: int | None = _FROM_CONFIG,
        max_rhs_size: int | None = _FROM_CONFIG,
    ) -> RuleSet:
        """Rules over item ids.

        Omitted arguments fall back to the constructor configuration; pass
        ``max_lhs_size=None`` / ``max_rhs_size=None`` to lift a configured cap.
        """
        cfg = self.config
        default = min_confidence is None and max_lhs_size is _FROM_CONFIG and max_rhs_size is _FROM_CONFIG
        if default and self._rules is not None:
            return self._rules
        rules = generate_rules(
            self.store,
            cfg.min_confidence if min_confidence is None else min_confidence,
            max_lhs_size=cfg.max_lhs_size if max_lhs_size is _FROM_CONFIG else max_lhs_size,
            max_rhs_size=cfg.max_rhs_size if max_rhs_size is _FROM_CONFIG else max_rhs_size,
            chunk_size=cfg.chunk_size,
            diagnostics=self._sink(),
        )
        if default:
            self._rules = rules
        return rules

    def association_rules(
        self,
        min_confidence: float | None = None,
        max_lhs_size: int | None = _FROM_CONFIG,
        max_rhs_size: int | None = _FROM_CONFIG,
    ) -> pd.DataFrame:
        """Association rules with item labels; see :func:`~basketmine.rules.generate_rules`."""
        return self.rules(min_confidence, max_lhs_size, max_rhs_size).to_frame(self.dictionary)

    def __repr__(self) -> str:
        fitted = self._store is not None
        return (
            f"{type(self).__name__}("
            f"min_support={self.config.min_support}, "
            f"min_confidence={self.config.min_confidence}, "
            f"fitted={fitted})"
        )


def apriori(
    df: Any,
    min_support: float = 0.1,
    transaction_col: str | None = None,
    item_col: str | None = None,
    max_itemset_size: int | None = None,
    max_candidates: int | None = None,
    verbose: int = 0,
) -> pd.DataFrame:
    """Find frequent itemsets with the level-wise Apriori search.

    This module-level function relies on the Object-Oriented APIs.
    """
    return Apriori(
        data=df,
        min_support=min_support,
        transaction_col=transaction_col,
        item_col=item_col,
        max_itemset_size=max_itemset_size,
        max_candidates=max_candidates,
        verbose=verbose,
    ).mine()

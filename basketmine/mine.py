from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .apriori import Apriori
from .config import MiningConfig
from .diagnostics import MiningTerminated, Sink
from .export import RuleMaterializer, materialize_rules

if TYPE_CHECKING:
    import pandas as pd

    from .dictionary import ItemDictionary
    from .rules import RuleSet
    from .store import FrequentItemsetStore


@dataclass(frozen=True)
class MiningResult:
    """Everything one call to :func:`mine` produced.

    Attributes
    ----------
    frequent_itemsets : pandas.DataFrame
        Columns ``itemsets`` (frozenset of labels), ``support``, ``count``, ``level``.
    rules : pandas.DataFrame
        Columns ``rule_id``, ``antecedents``, ``consequents`` (frozensets of labels),
        ``count``, ``support``, ``confidence``, ``lift``, ``conviction``.
    n_transactions : int
        Number of distinct transactions.
    dictionary : ItemDictionary
        Label <-> id mapping used during the run.
    store : FrequentItemsetStore
        Frequent itemsets over item ids, by level.
    rule_set : RuleSet
        Rules over item ids.
    termination : MiningTerminated
        Why the level-wise search stopped.
    materialized : Any
        Return value of the materializer, when one was given.
    """

    frequent_itemsets: pd.DataFrame
    rules: pd.DataFrame
    n_transactions: int
    dictionary: ItemDictionary
    store: FrequentItemsetStore
    rule_set: RuleSet
    termination: MiningTerminated
    materialized: Any = None


def mine(
    min_support: float,
    min_confidence: float,
    transactions: Any,
    transaction_col: str | None = None,
    item_col: str | None = None,
    max_itemset_size: int | None = None,
    max_lhs_size: int | None = None,
    max_rhs_size: int | None = None,
    max_candidates: int | None = None,
    chunk_size: int = 1_000_000,
    materializer: RuleMaterializer | None = None,
    diagnostics: Sink | Iterable[Sink] | None = None,
    verbose: int = 0,
) -> MiningResult:
    """Mine frequent itemsets and association rules from ``(transaction id, item)`` rows.

    Parameters
    ----------
    min_support : float
        Minimum fraction of transactions containing an itemset, within ``[0, 1]``.
    min_confidence : float
        Minimum rule confidence, within ``[0, 1]``.
    transactions
        Long-format pandas / Polars / Spark DataFrame, PyArrow Table or a
        sequence of ``(transaction_id, item)`` pairs. Duplicate pairs collapse.
    transaction_col, item_col : str | None
        Column names; default to the first and second column.
    max_itemset_size, max_lhs_size, max_rhs_size, max_candidates : int | None
        Optional caps, see :class:`~basketmine.config.MiningConfig`.
    chunk_size : int, default=1_000_000
        Bound on the words materialised per vectorised step.
    materializer : RuleMaterializer, optional
        Also hand the labelled rules to this destination (Parquet, CSV, ...).
    diagnostics : callable or iterable of callables, optional
        Receive structured progress events.
    verbose : int, default=0
        If > 0, print progress details to standard output.

    Returns
    -------
    MiningResult

    Raises
    ------
    MiningConfigError
        For thresholds outside ``[0, 1]``, bad caps or an empty item domain.
    CandidateLimitError
        When a level exceeds ``max_candidates``.

    Examples
    --------
    >>> import basketmine
    >>> rows = [(1, "beer"), (1, "diapers"), (2, "beer"), (2, "diapers"), (3, "beer")]
    >>> result = basketmine.mine(0.5, 0.9, rows)
    >>> rule = result.rules.iloc[0]
    >>> sorted(rule["antecedents"]), sorted(rule["consequents"]), rule["confidence"]
    (['diapers'], ['beer'], 1.0)
    """
    config = MiningConfig(
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

    model = Apriori(
        transactions,
        min_support=config.min_support,
        min_confidence=config.min_confidence,
        transaction_col=config.transaction_col,
        item_col=config.item_col,
        max_itemset_size=config.max_itemset_size,
        max_lhs_size=config.max_lhs_size,
        max_rhs_size=config.max_rhs_size,
        max_candidates=config.max_candidates,
        chunk_size=config.chunk_size,
        verbose=config.verbose,
        diagnostics=diagnostics,
    ).fit()

    rule_set = model.rules()
    materialized = None
    if materializer is not None:
        materialized = materialize_rules(rule_set, model.dictionary, materializer)

    return MiningResult(
        frequent_itemsets=model.mine(),
        rules=rule_set.to_frame(model.dictionary),
        n_transactions=model.transactions.n_transactions,
        dictionary=model.dictionary,
        store=model.store,
        rule_set=rule_set,
        termination=model.termination,
        materialized=materialized,
    )

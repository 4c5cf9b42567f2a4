from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any

from ._validation import MiningConfigError, check_fraction, check_optional_cap


@dataclass(frozen=True)
class MiningConfig:
    """Parameters of one mining run.

    Parameters
    ----------
    min_support : float, default=0.1
        Minimum fraction of transactions an itemset must appear in, within ``[0, 1]``.
    min_confidence : float, default=0.5
        Minimum confidence of an emitted rule, within ``[0, 1]``.
    transaction_col : str | None, default=None
        Column holding transaction ids. ``None`` selects the first column.
    item_col : str | None, default=None
        Column holding item labels. ``None`` selects the second column.
    max_itemset_size : int | None, default=None
        Last level the search is allowed to reach. ``None`` means unbounded.
    max_lhs_size : int | None, default=None
        Largest antecedent kept in the rule output.
    max_rhs_size : int | None, default=None
        Largest consequent kept in the rule output.
    max_candidates : int | None, default=None
        Per-level candidate budget. Exceeding it aborts the run with
        :class:`~basketmine.CandidateLimitError`.
    chunk_size : int, default=1_000_000
        Upper bound on the number of 64-bit words materialised by one
        vectorised step (pair joins, support scans, superset tests).
    verbose : int, default=0
        If > 0, print progress details to standard output.
    """

    min_support: float = 0.1
    min_confidence: float = 0.5
    transaction_col: str | None = None
    item_col: str | None = None
    max_itemset_size: int | None = None
    max_lhs_size: int | None = None
    max_rhs_size: int | None = None
    max_candidates: int | None = None
    chunk_size: int = 1_000_000
    verbose: int = 0

    def validate(self) -> MiningConfig:
        """Check every field and return a copy with thresholds as float and caps as int."""
        min_support = check_fraction("min_support", self.min_support)
        min_confidence = check_fraction("min_confidence", self.min_confidence)
        caps = {
            name: check_optional_cap(name, getattr(self, name))
            for name in ("max_itemset_size", "max_lhs_size", "max_rhs_size", "max_candidates")
        }
        chunk_size = check_optional_cap("chunk_size", self.chunk_size)
        if chunk_size is None:
            raise MiningConfigError("`chunk_size` must be a positive integer. Got None.")
        return dataclasses.replace(
            self, min_support=min_support, min_confidence=min_confidence, chunk_size=chunk_size, **caps
        )

    @classmethod
    def from_kwargs(cls, **kwargs: Any) -> MiningConfig:
        """Build a validated config, rejecting unknown keyword arguments."""
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(kwargs) - known)
        if unknown:
            raise MiningConfigError(f"Unknown mining options: {unknown}. Valid options are {sorted(known)}.")
        return cls(**kwargs).validate()

"""Input validation utilities and the errors raised by the mining pipeline."""

from __future__ import annotations

import math
import numbers
from typing import Any


class MiningConfigError(ValueError):
    """Fatal configuration error: bad thresholds, caps, columns or item domain."""


class CandidateLimitError(RuntimeError):
    """Raised when a level produces more candidates than ``max_candidates`` allows."""

    def __init__(self, level: int, n_candidates: int, max_candidates: int) -> None:
        self.level = level
        self.n_candidates = n_candidates
        self.max_candidates = max_candidates
        super().__init__(
            f"Level {level} produced {n_candidates:,} candidates, exceeding "
            f"max_candidates={max_candidates:,}. Raise min_support or set max_itemset_size."
        )


def check_fraction(name: str, value: Any) -> float:
    """Return *value* as a float, raising if it is not a number in ``[0, 1]``."""
    if isinstance(value, bool):
        raise MiningConfigError(f"`{name}` must be a number within the interval `[0, 1]`. Got {value!r}.")
    try:
        fvalue = float(value)
    except (TypeError, ValueError) as e:
        raise MiningConfigError(f"`{name}` must be a number within the interval `[0, 1]`. Got {value!r}.") from e
    if math.isnan(fvalue) or not 0.0 <= fvalue <= 1.0:
        raise MiningConfigError(f"`{name}` must be a number within the interval `[0, 1]`. Got {value!r}.")
    return fvalue


def check_optional_cap(name: str, value: Any) -> int | None:
    """Validate an optional positive integer cap (``None`` means unbounded)."""
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, numbers.Integral) or value < 1:
        raise MiningConfigError(f"`{name}` must be None or a positive integer. Got {value!r}.")
    return int(value)


def check_columns(columns: list[Any], transaction_col: str | None, item_col: str | None) -> tuple[Any, Any]:
    """Resolve the transaction / item columns of a long-format frame.

    Missing names default to the first and second column respectively.
    """
    if len(columns) < 2:
        raise MiningConfigError(
            f"DataFrame must have at least 2 columns (transaction id + item), got {len(columns)}: {columns}"
        )

    txn_col = transaction_col if transaction_col is not None else columns[0]
    itm_col = item_col if item_col is not None else columns[1]

    if txn_col not in columns:
        raise MiningConfigError(f"Transaction column '{txn_col}' not found. Available columns: {columns}")
    if itm_col not in columns:
        raise MiningConfigError(f"Item column '{itm_col}' not found. Available columns: {columns}")
    if txn_col == itm_col:
        raise MiningConfigError(f"Transaction and item columns must differ, both are '{txn_col}'.")
    return txn_col, itm_col

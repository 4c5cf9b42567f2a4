from __future__ import annotations

import pytest

from basketmine import MiningConfig, MiningConfigError
from basketmine._validation import check_columns


def test_defaults_validate() -> None:
    cfg = MiningConfig().validate()
    assert cfg.min_support == 0.1
    assert cfg.chunk_size == 1_000_000


def test_thresholds_coerced_to_float() -> None:
    cfg = MiningConfig(min_support=1, min_confidence=0).validate()
    assert isinstance(cfg.min_support, float)
    assert isinstance(cfg.min_confidence, float)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"min_support": 2},
        {"min_confidence": -0.5},
        {"max_itemset_size": 0},
        {"max_lhs_size": 1.5},
        {"max_rhs_size": -1},
        {"max_candidates": True},
        {"chunk_size": 0},
        {"chunk_size": None},
    ],
)
def test_invalid(kwargs: dict) -> None:
    with pytest.raises(MiningConfigError):
        MiningConfig(**kwargs).validate()


def test_from_kwargs_rejects_unknown() -> None:
    assert MiningConfig.from_kwargs(min_support=0.3).min_support == 0.3
    with pytest.raises(MiningConfigError, match="Unknown mining options"):
        MiningConfig.from_kwargs(min_suport=0.3)


def test_config_is_frozen() -> None:
    cfg = MiningConfig()
    with pytest.raises(AttributeError):
        cfg.min_support = 0.5  # type: ignore[misc]


def test_check_columns_defaults() -> None:
    assert check_columns(["a", "b", "c"], None, None) == ("a", "b")
    assert check_columns(["a", "b", "c"], "c", None) == ("c", "b")
    with pytest.raises(MiningConfigError):
        check_columns(["a", "b"], "a", "a")

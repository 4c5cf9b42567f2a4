"""Rule generation tests."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from basketmine import (
    Apriori,
    EventRecorder,
    FrequentItemsetStore,
    FrequentLevel,
    MiningConfigError,
    RulesGenerated,
    generate_rules,
)
from basketmine import itemset as bits
from basketmine.rules import RULE_COLUMNS


def _rule(frame: pd.DataFrame, ante: set, cons: set) -> pd.Series:
    sel = frame[(frame["antecedents"] == frozenset(ante)) & (frame["consequents"] == frozenset(cons))]
    assert len(sel) == 1, f"expected exactly one rule {ante} => {cons}"
    return sel.iloc[0]


@pytest.fixture
def beer_model(beer_df: pd.DataFrame) -> Apriori:
    return Apriori(beer_df, min_support=0.25, min_confidence=0.5).fit()


def test_diapers_implies_beer(beer_model: Apriori) -> None:
    rules = beer_model.association_rules()
    rule = _rule(rules, {"diapers"}, {"beer"})
    assert rule["confidence"] == 1.0
    assert rule["lift"] == pytest.approx(1.0)
    assert rule["conviction"] == 0.0
    assert rule["support"] == pytest.approx(5 / 7)
    assert rule["count"] == 5


def test_metrics(beer_model: Apriori) -> None:
    rules = beer_model.association_rules()
    rule = _rule(rules, {"beer"}, {"diapers"})
    assert rule["confidence"] == pytest.approx(5 / 7)
    assert rule["lift"] == pytest.approx((5 / 7) / (1.0 * 5 / 7))
    assert rule["conviction"] == pytest.approx((1 - 5 / 7) / (1 - 5 / 7))

    rule = _rule(rules, {"chips"}, {"diapers"})
    assert rule["confidence"] == pytest.approx(2 / 3)
    assert rule["lift"] == pytest.approx((2 / 7) / ((3 / 7) * (5 / 7)))
    assert rule["conviction"] == pytest.approx((1 - 5 / 7) / (1 - 2 / 3))

    rule = _rule(rules, {"diapers", "chips"}, {"beer"})
    assert rule["confidence"] == 1.0
    assert rule["conviction"] == 0.0


def test_confidence_bound(beer_model: Apriori) -> None:
    rules = beer_model.association_rules()
    freq = beer_model.mine()
    support = dict(zip(freq["itemsets"], freq["support"]))
    assert len(rules) > 0
    for _, r in rules.iterrows():
        assert r["confidence"] >= 0.5
        whole = r["antecedents"] | r["consequents"]
        assert len(whole) >= 2
        assert not (r["antecedents"] & r["consequents"])
        assert r["confidence"] == pytest.approx(support[whole] / support[r["antecedents"]])
        assert np.isfinite(r["conviction"])


def test_columns_and_ids(beer_model: Apriori) -> None:
    rules = beer_model.association_rules()
    assert list(rules.columns) == RULE_COLUMNS
    assert rules["rule_id"].tolist() == list(range(1, len(rules) + 1))


def test_emission_order_is_deterministic(beer_df: pd.DataFrame) -> None:
    first = Apriori(beer_df, min_support=0.25, min_confidence=0.1).association_rules()
    second = Apriori(beer_df, min_support=0.25, min_confidence=0.1).association_rules()
    pd.testing.assert_frame_equal(first, second)


def test_lhs_rhs_caps(beer_model: Apriori) -> None:
    everything = beer_model.association_rules(min_confidence=0.0)
    lhs1 = beer_model.association_rules(min_confidence=0.0, max_lhs_size=1)
    rhs1 = beer_model.association_rules(min_confidence=0.0, max_rhs_size=1)

    assert everything["antecedents"].map(len).max() == 2
    assert everything["consequents"].map(len).max() == 2
    assert lhs1["antecedents"].map(len).max() == 1
    assert rhs1["consequents"].map(len).max() == 1
    # 3 items in one frequent triple + 3 frequent pairs -> 6 + 6 rules
    assert len(everything) == 12


def test_high_threshold_gives_empty_result(beer_model: Apriori) -> None:
    rules = beer_model.rules(min_confidence=1.0)
    assert len(rules) == 3  # diapers=>beer, chips=>beer, {diapers,chips}=>beer
    frame = beer_model.association_rules(min_confidence=1.0)
    assert set(frame["consequents"]) == {frozenset({"beer"})}


def test_no_rules_from_single_level() -> None:
    store = FrequentItemsetStore(n_items=2, n_transactions=4)
    store.add_level(FrequentLevel.build(1, np.stack([bits.pack([1], 2), bits.pack([2], 2)]), np.array([3, 2]), 4))
    recorder = EventRecorder()
    rules = generate_rules(store, 0.0, diagnostics=recorder)
    assert len(rules) == 0
    assert list(rules.to_frame().columns) == RULE_COLUMNS
    assert recorder.of_type(RulesGenerated)[0].n_rules == 0


def test_consequent_missing_from_store_is_skipped() -> None:
    # {1,2} frequent but {2} deliberately absent: only 2 => ... impossible, 1 => 2 needs support(2)
    store = FrequentItemsetStore(n_items=2, n_transactions=4)
    store.add_level(FrequentLevel.build(1, np.stack([bits.pack([1], 2)]), np.array([3]), 4))
    store.add_level(FrequentLevel.build(2, np.stack([bits.pack([1, 2], 2)]), np.array([2]), 4))
    assert len(generate_rules(store, 0.0)) == 0


def test_bad_confidence(beer_model: Apriori) -> None:
    with pytest.raises(MiningConfigError):
        generate_rules(beer_model.store, 1.2)
    with pytest.raises(MiningConfigError):
        generate_rules(beer_model.store, 0.5, max_lhs_size=0)


def test_chunked_rule_generation_matches(retail_df: pd.DataFrame) -> None:
    model = Apriori(retail_df, min_support=0.2, min_confidence=0.3).fit()
    full = generate_rules(model.store, 0.3)
    tiny = generate_rules(model.store, 0.3, chunk_size=1)
    assert len(full) > 0
    pd.testing.assert_frame_equal(full.to_frame(model.dictionary), tiny.to_frame(model.dictionary))

from __future__ import annotations

import pandas as pd
import pytest

from basketmine import ItemDictionary, MiningConfigError


def test_assign_is_dense_and_stable() -> None:
    d = ItemDictionary()
    assert [d.assign(x) for x in ["milk", "bread", "milk", "eggs"]] == [1, 2, 1, 3]
    assert len(d) == 3
    assert d.label(2) == "bread"
    assert d.labels([3, 1]) == ("eggs", "milk")
    assert d.ids(["eggs", "bread"]) == (3, 2)


def test_unknown_lookups() -> None:
    d = ItemDictionary(["a"])
    with pytest.raises(KeyError):
        d.id_of("b")
    with pytest.raises(KeyError):
        d.label(0)
    with pytest.raises(KeyError):
        d.label(2)
    assert "a" in d
    assert "b" not in d
    assert [] not in d


def test_null_label_rejected() -> None:
    with pytest.raises(MiningConfigError):
        ItemDictionary().assign(None)
    with pytest.raises(MiningConfigError):
        ItemDictionary().assign(float("nan"))


def test_from_series_sorted() -> None:
    d, ids = ItemDictionary.from_series(pd.Series(["milk", "bread", "milk", "apple"]))
    assert d.all_labels == ("apple", "bread", "milk")
    assert ids.tolist() == [3, 2, 3, 1]


def test_from_series_mixed_types_fall_back_to_appearance_order() -> None:
    d, ids = ItemDictionary.from_series(pd.Series(["b", 2, "a", 2], dtype=object))
    assert len(d) == 3
    assert [d.label(i) for i in ids] == ["b", 2, "a", 2]


def test_roundtrip_labels() -> None:
    labels = [10, 7, 3, 7, 10]
    d, ids = ItemDictionary.from_series(pd.Series(labels))
    assert [d.label(int(i)) for i in ids] == labels

"""Tests for basketmine.encode_transactions."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from basketmine import MiningConfigError, TransactionStore, encode_transactions, from_transactions
from basketmine import itemset as bits


# ---------------------------------------------------------------------------
# Pandas DataFrame input
# ---------------------------------------------------------------------------


class TestFromPandas:
    def test_basic(self) -> None:
        df = pd.DataFrame({"order_id": [1, 1, 1, 2, 2, 3], "item": [3, 4, 5, 3, 5, 8]})
        store = from_transactions(df)

        assert isinstance(store, TransactionStore)
        assert store.n_transactions == 3
        assert store.n_items == 4
        assert bits.cardinality(store.words).tolist() == [3, 2, 1]
        assert store.item_counts.tolist() == [0, 2, 1, 2, 1]

    def test_custom_columns(self) -> None:
        df = pd.DataFrame({"product": ["a", "b", "a", "c"], "basket": [1, 1, 2, 2]})
        store = encode_transactions(df, transaction_col="basket", item_col="product")
        assert store.n_transactions == 2
        assert store.dictionary.all_labels == ("a", "b", "c")

    def test_missing_column(self) -> None:
        df = pd.DataFrame({"a": [1], "b": ["x"]})
        with pytest.raises(MiningConfigError, match="not found"):
            encode_transactions(df, transaction_col="order")

    def test_too_few_columns(self) -> None:
        with pytest.raises(MiningConfigError):
            encode_transactions(pd.DataFrame({"a": [1, 2]}))

    def test_duplicates_collapse(self) -> None:
        df = pd.DataFrame({"t": [1, 1, 1, 2], "i": ["x", "x", "y", "x"]})
        store = encode_transactions(df)
        assert store.item_counts.tolist() == [0, 2, 1]
        assert bits.cardinality(store.words).tolist() == [2, 1]

    def test_nulls_dropped(self) -> None:
        df = pd.DataFrame({"t": [1, 1, None, 2], "i": ["x", None, "y", "z"]})
        store = encode_transactions(df)
        assert store.n_transactions == 2
        assert set(store.dictionary.all_labels) == {"x", "z"}

    def test_empty_input(self) -> None:
        with pytest.raises(MiningConfigError, match="empty"):
            encode_transactions(pd.DataFrame({"t": [], "i": []}))

    def test_opaque_transaction_ids(self) -> None:
        df = pd.DataFrame({"t": [("a", 1), ("a", 1), ("b", 2)], "i": [1, 2, 1]})
        store = encode_transactions(df)
        assert list(store.transaction_ids) == [("a", 1), ("b", 2)]

    def test_store_is_read_only(self) -> None:
        store = encode_transactions(pd.DataFrame({"t": [1], "i": [1]}))
        with pytest.raises(ValueError):
            store.words[0, 0] = 0


# ---------------------------------------------------------------------------
# Other input containers
# ---------------------------------------------------------------------------


def test_pairs_input(beer_pairs: list[tuple[int, str]]) -> None:
    store = encode_transactions(beer_pairs)
    assert store.n_transactions == 7
    assert store.dictionary.all_labels == ("beer", "chips", "diapers")


def test_malformed_pairs() -> None:
    with pytest.raises(MiningConfigError):
        encode_transactions([(1, "a", "extra")])


def test_unsupported_type() -> None:
    with pytest.raises(TypeError):
        encode_transactions(42)


def test_polars_input(beer_df: pd.DataFrame) -> None:
    pl = pytest.importorskip("polars")
    store = encode_transactions(pl.from_pandas(beer_df))
    assert store.n_transactions == 7
    assert store.n_items == 3


def test_arrow_input(beer_df: pd.DataFrame) -> None:
    import pyarrow as pa

    store = encode_transactions(pa.Table.from_pandas(beer_df, preserve_index=False))
    assert store.n_transactions == 7


def test_spark_like_input(beer_df: pd.DataFrame, spark_df, arrow_spark_df) -> None:
    expected = encode_transactions(beer_df)
    for frame in (spark_df, arrow_spark_df):
        store = encode_transactions(frame)
        assert store.n_transactions == 7
        np.testing.assert_array_equal(store.words, expected.words)


def test_itemset_of_row(beer_df: pd.DataFrame) -> None:
    store = encode_transactions(beer_df)
    first = store.itemset(0)
    assert isinstance(first, bits.Itemset)
    assert store.dictionary.labels(first.items) == ("beer", "chips", "diapers")
    assert store.dictionary.labels(store.itemset(4).items) == ("beer",)


def test_one_hot_views(beer_df: pd.DataFrame) -> None:
    store = encode_transactions(beer_df)
    csr = store.to_sparse()
    assert csr.shape == (7, 3)
    assert np.asarray(csr.sum(axis=0)).ravel().tolist() == [7, 3, 5]

    frame = store.to_frame()
    assert list(frame.columns) == ["beer", "chips", "diapers"]
    assert frame.loc[5].tolist() == [True, False, False]

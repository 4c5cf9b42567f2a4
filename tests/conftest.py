"""pytest configuration and shared fixtures."""

from __future__ import annotations

import pandas as pd
import pytest

BASKETS = {
    1: ["beer", "diapers", "chips"],
    2: ["beer", "diapers"],
    3: ["beer", "diapers"],
    4: ["beer", "chips"],
    5: ["beer"],
    6: ["beer", "diapers", "chips"],
    7: ["beer", "diapers"],
}


@pytest.fixture
def beer_pairs() -> list[tuple[int, str]]:
    """The beer / diapers / chips scenario as (transaction_id, item) pairs."""
    return [(tid, item) for tid, items in BASKETS.items() for item in items]


@pytest.fixture
def beer_df(beer_pairs: list[tuple[int, str]]) -> pd.DataFrame:
    return pd.DataFrame(beer_pairs, columns=["order_id", "item"])


@pytest.fixture
def retail_df() -> pd.DataFrame:
    """A slightly larger basket table with several multi-item patterns."""
    baskets = [
        ["bread", "milk"],
        ["bread", "diapers", "beer", "eggs"],
        ["milk", "diapers", "beer", "cola"],
        ["bread", "milk", "diapers", "beer"],
        ["bread", "milk", "diapers", "cola"],
        ["bread", "milk", "diapers", "beer"],
        ["milk", "cola"],
        ["bread", "beer"],
    ]
    rows = [(f"t{i}", item) for i, basket in enumerate(baskets) for item in basket]
    return pd.DataFrame(rows, columns=["txn", "product"])


class SparkLikeFrame:
    """Stand-in for a PySpark DataFrame: only ``toPandas()`` is available."""

    def __init__(self, df: pd.DataFrame) -> None:
        self._df = df

    def toPandas(self) -> pd.DataFrame:  # noqa: N802
        return self._df.copy()


class ArrowSparkFrame(SparkLikeFrame):
    """PySpark 3.4+ style frame that also hands over Arrow tables."""

    def toArrow(self):  # noqa: N802, ANN201
        import pyarrow as pa

        return pa.Table.from_pandas(self._df, preserve_index=False)


@pytest.fixture
def spark_df(beer_df: pd.DataFrame) -> SparkLikeFrame:
    return SparkLikeFrame(beer_df)


@pytest.fixture
def arrow_spark_df(beer_df: pd.DataFrame) -> ArrowSparkFrame:
    return ArrowSparkFrame(beer_df)

from __future__ import annotations

import typing
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    import pandas as pd
    import polars as pl
    import pyarrow as pa

    #: Long-format inputs accepted by every ``transactions`` / ``data`` parameter:
    #:
    #: * ``pandas.DataFrame``
    #: * ``polars.DataFrame``
    #: * ``pyarrow.Table``
    #: * anything exposing ``toArrow()`` or ``toPandas()`` (PySpark DataFrames)
    DataFrame = Union[pd.DataFrame, pl.DataFrame, pa.Table]  # noqa: UP007


def _module_of(data: Any) -> str:
    return getattr(type(data), "__module__", "") or ""


def is_polars(data: Any) -> bool:
    return type(data).__name__ == "DataFrame" and _module_of(data).startswith("polars")


def is_arrow(data: Any) -> bool:
    return type(data).__name__ == "Table" and _module_of(data).startswith("pyarrow")


def is_spark(data: Any) -> bool:
    return hasattr(data, "toArrow") or hasattr(data, "toPandas")


def to_dataframe(data: Any) -> Any:
    """Coerce Polars/PyArrow/Spark inputs to a pandas DataFrame; return everything else unchanged."""
    if is_arrow(data):
        return typing.cast("pa.Table", data).to_pandas()

    if is_polars(data):
        return typing.cast("pl.DataFrame", data).to_pandas()

    if is_spark(data):
        # PySpark 3.4+ can hand over Arrow batches directly
        if hasattr(data, "toArrow"):
            return data.toArrow().to_pandas()
        return data.toPandas()

    return data

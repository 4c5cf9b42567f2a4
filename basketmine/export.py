from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

import pandas as pd

from .rules import RULE_COLUMNS

if TYPE_CHECKING:
    from .dictionary import ItemDictionary
    from .rules import RuleSet


class RuleMaterializer(Protocol):
    """Destination for finished rules.

    ``write`` receives one row per rule with columns ``rule_id``,
    ``antecedents``, ``consequents`` (lists of item labels), ``count``,
    ``support``, ``confidence``, ``lift`` and ``conviction``.
    """

    def write(self, rules: pd.DataFrame) -> Any: ...


def rule_records(rules: RuleSet, dictionary: ItemDictionary) -> pd.DataFrame:
    """Translate rules over item ids into label lists, ordered by item id."""
    records = [
        (rid, list(dictionary.labels(ante)), list(dictionary.labels(cons)), *metrics)
        for rid, ante, cons, *metrics in rules.rows()
    ]
    if not records:
        return pd.DataFrame(columns=pd.Index(RULE_COLUMNS))
    return pd.DataFrame.from_records(records, columns=RULE_COLUMNS)


def _order(frame: pd.DataFrame, sort_by: str | list[str] | None, ascending: bool) -> pd.DataFrame:
    if sort_by is None or frame.empty:
        return frame
    return frame.sort_values(by=sort_by, ascending=ascending, kind="stable").reset_index(drop=True)


class DataFrameMaterializer:
    """Return the rules as a pandas DataFrame, optionally sorted.

    Parameters
    ----------
    sort_by : str | list[str] | None, default=None
        Metric column(s) to order by. ``None`` keeps ``rule_id`` order.
    ascending : bool, default=False
        Sort direction.
    """

    def __init__(self, sort_by: str | list[str] | None = None, ascending: bool = False) -> None:
        self.sort_by = sort_by
        self.ascending = ascending

    def write(self, rules: pd.DataFrame) -> pd.DataFrame:
        return _order(rules, self.sort_by, self.ascending)


class ParquetMaterializer:
    """Write the rules to a Parquet file with ``pyarrow`` and return the path."""

    def __init__(
        self,
        path: str | Path,
        sort_by: str | list[str] | None = None,
        ascending: bool = False,
        compression: str = "zstd",
    ) -> None:
        self.path = Path(path)
        self.sort_by = sort_by
        self.ascending = ascending
        self.compression = compression

    def write(self, rules: pd.DataFrame) -> Path:
        import pyarrow as pa
        import pyarrow.parquet as pq

        self.path.parent.mkdir(parents=True, exist_ok=True)
        frame = _order(rules, self.sort_by, self.ascending)
        table = pa.Table.from_pandas(frame, preserve_index=False)
        pq.write_table(table, self.path, compression=self.compression)
        return self.path


class CsvMaterializer:
    """Write the rules to CSV; label lists are joined with *item_separator*."""

    def __init__(
        self,
        path: str | Path,
        sort_by: str | list[str] | None = None,
        ascending: bool = False,
        item_separator: str = "|",
    ) -> None:
        self.path = Path(path)
        self.sort_by = sort_by
        self.ascending = ascending
        self.item_separator = item_separator

    def write(self, rules: pd.DataFrame) -> Path:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        frame = _order(rules, self.sort_by, self.ascending).copy()
        for col in ("antecedents", "consequents"):
            frame[col] = frame[col].map(lambda labels: self.item_separator.join(str(x) for x in labels))
        frame.to_csv(self.path, index=False)
        return self.path


def materialize_rules(
    rules: RuleSet,
    dictionary: ItemDictionary,
    materializer: RuleMaterializer | None = None,
) -> Any:
    """Hand labelled rules to *materializer* (a :class:`DataFrameMaterializer` by default)."""
    if materializer is None:
        materializer = DataFrameMaterializer()
    return materializer.write(rule_records(rules, dictionary))

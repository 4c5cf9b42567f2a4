from __future__ import annotations

import time
import typing
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import numpy as np
import pandas as pd

from . import itemset as bits
from ._compat import to_dataframe
from ._validation import MiningConfigError, check_columns
from .dictionary import ItemDictionary

if TYPE_CHECKING:
    import polars as pl
    import pyarrow as pa
    from scipy import sparse as sp

    from ._compat import DataFrame


@dataclass(frozen=True)
class TransactionStore:
    """Read-only, bit-packed transaction table.

    Row ``r`` of :attr:`words` is the itemset bought in transaction
    ``transaction_ids[r]``.  :attr:`item_counts` holds the number of
    transactions containing each item id (index 0 is unused).
    """

    words: np.ndarray
    transaction_ids: np.ndarray
    dictionary: ItemDictionary
    item_counts: np.ndarray = field(repr=False)

    def __post_init__(self) -> None:
        self.words.flags.writeable = False
        self.item_counts.flags.writeable = False

    @property
    def n_transactions(self) -> int:
        return int(self.words.shape[0])

    @property
    def n_items(self) -> int:
        return len(self.dictionary)

    def __len__(self) -> int:
        return self.n_transactions

    def itemset(self, row: int) -> bits.Itemset:
        return bits.Itemset.from_words(self.words[row], self.n_items)

    def to_sparse(self) -> sp.csr_matrix:
        """One-hot ``(n_transactions, n_items)`` CSR matrix; column ``j`` is item id ``j + 1``."""
        from scipy import sparse as sp

        rows, cols = np.nonzero(bits.unpack(self.words, self.n_items))
        return sp.csr_matrix(
            (np.ones(len(rows), dtype=bool), (rows, cols)),
            shape=(self.n_transactions, self.n_items),
        )

    def to_frame(self) -> pd.DataFrame:
        """One-hot boolean DataFrame indexed by transaction id with one column per item label."""
        return pd.DataFrame.sparse.from_spmatrix(
            self.to_sparse(),
            index=pd.Index(self.transaction_ids),
            columns=list(self.dictionary.all_labels),
        ).astype(pd.SparseDtype("bool", fill_value=False))


def _pairs_frame(data: Sequence[Sequence[Any]]) -> pd.DataFrame:
    rows = list(data)
    for row in rows:
        if isinstance(row, (str, bytes)) or len(row) != 2:
            raise MiningConfigError(f"Expected (transaction_id, item) pairs, got {row!r}")
    return pd.DataFrame(rows, columns=["transaction_id", "item"])


def _as_long_frame(data: Any) -> pd.DataFrame:
    data = to_dataframe(data)
    if isinstance(data, pd.DataFrame):
        return data
    if isinstance(data, (list, tuple)):
        return _pairs_frame(data)
    raise TypeError(f"Expected a Pandas/Polars/Spark/PyArrow DataFrame or a sequence of pairs, got {type(data)}")


def encode_transactions(
    data: DataFrame | Sequence[Sequence[Any]] | Any,
    transaction_col: str | None = None,
    item_col: str | None = None,
    verbose: int = 0,
) -> TransactionStore:
    """Group long-format ``(transaction id, item)`` rows into one itemset per transaction.

    Rows with a null transaction id or item are dropped and duplicate
    pairs collapse to a single membership bit.

    Parameters
    ----------
    data
        Long-format pandas / Polars / Spark DataFrame or PyArrow Table, or a
        sequence of ``(transaction_id, item)`` pairs.
    transaction_col
        Name of the column that identifies transactions.  If ``None`` the
        first column is used.
    item_col
        Name of the column that contains item labels.  If ``None`` the
        second column is used.
    verbose
        If > 0, print progress details to standard output.

    Returns
    -------
    TransactionStore

    Raises
    ------
    MiningConfigError
        If the columns cannot be resolved or no item survives null filtering.
    """
    t0 = 0.0
    if verbose:
        print(f"[{time.strftime('%X')}] Encoding transactions...")
        t0 = time.perf_counter()

    df = _as_long_frame(data)
    txn_col, itm_col = check_columns(list(df.columns), transaction_col, item_col)
    df = typing.cast("pd.DataFrame", df[[txn_col, itm_col]]).dropna()

    if df.empty:
        raise MiningConfigError("The input contains no (transaction, item) pairs; the item domain is empty.")

    dictionary, item_ids = ItemDictionary.from_series(df[itm_col])
    txn_codes, txn_uniques = pd.factorize(df[txn_col].to_numpy(), sort=False)

    n_txn = len(txn_uniques)
    n_items = len(dictionary)

    pairs = np.unique(np.column_stack([txn_codes.astype(np.int64), item_ids]), axis=0)
    words = bits.pack_rows(pairs[:, 0], pairs[:, 1], n_txn, n_items)
    item_counts = np.bincount(pairs[:, 1], minlength=n_items + 1).astype(np.int64)

    if verbose:
        print(
            f"[{time.strftime('%X')}] Encoded {n_txn:,} transactions over {n_items:,} items "
            f"in {time.perf_counter() - t0:.2f}s."
        )

    return TransactionStore(
        words=words,
        transaction_ids=np.asarray(txn_uniques, dtype=object),
        dictionary=dictionary,
        item_counts=item_counts,
    )


def from_transactions(
    data: DataFrame | Sequence[Sequence[Any]] | Any,
    transaction_col: str | None = None,
    item_col: str | None = None,
    verbose: int = 0,
) -> TransactionStore:
    """Alias of :func:`encode_transactions`.

    Examples
    --------
    >>> import basketmine
    >>> import pandas as pd
    >>> df = pd.DataFrame({
    ...     "order_id": [1, 1, 1, 2, 2, 3],
    ...     "item": [3, 4, 5, 3, 5, 8],
    ... })
    >>> store = basketmine.from_transactions(df)
    >>> store.n_transactions, store.n_items
    (3, 4)
    """
    return encode_transactions(data, transaction_col=transaction_col, item_col=item_col, verbose=verbose)


def from_pandas(
    df: pd.DataFrame,
    transaction_col: str | None = None,
    item_col: str | None = None,
    verbose: int = 0,
) -> TransactionStore:
    """Shorthand for ``from_transactions(df, transaction_col, item_col)``."""
    return encode_transactions(df, transaction_col=transaction_col, item_col=item_col, verbose=verbose)


def from_polars(
    df: pl.DataFrame,
    transaction_col: str | None = None,
    item_col: str | None = None,
    verbose: int = 0,
) -> TransactionStore:
    """Shorthand for ``from_transactions(df, transaction_col, item_col)``."""
    return encode_transactions(df, transaction_col=transaction_col, item_col=item_col, verbose=verbose)


def from_arrow(
    table: pa.Table,
    transaction_col: str | None = None,
    item_col: str | None = None,
    verbose: int = 0,
) -> TransactionStore:
    """Shorthand for ``from_transactions(table, transaction_col, item_col)``."""
    return encode_transactions(table, transaction_col=transaction_col, item_col=item_col, verbose=verbose)

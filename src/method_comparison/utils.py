import logging

import pandas as pd

logger = logging.getLogger(__name__)

ROWWISE_REDUCTIONS = ("max", "min", "mean")


def rowwise_reduce(df, columns, how="max"):
    """
    Reduce several measurement fields per record rather than per column.

    Parameters
    ----------
    df : pd.DataFrame
        Table with one record per row.
    columns : list of str
        Fields to reduce across for each record.
    how : {"max", "min", "mean"}, optional
        Reduction applied to each record's values. Missing values are skipped;
        a record whose fields are all missing gives NaN. Defaults to "max".

    Returns
    -------
    pd.Series
        One value per row of ``df``, aligned on its index.

    Raises
    ------
    ValueError
        If ``how`` is not supported or ``columns`` is empty.
    KeyError
        If any column is missing from ``df``.
    """
    if how not in ROWWISE_REDUCTIONS:
        raise ValueError(f"how must be one of {ROWWISE_REDUCTIONS}, got {how!r}")
    if not columns:
        raise ValueError("columns must not be empty")

    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise KeyError(f"Columns not found: {missing}")

    values = df[list(columns)].apply(pd.to_numeric, errors="coerce")
    return getattr(values, how)(axis=1, skipna=True)

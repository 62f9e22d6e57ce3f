import logging
import pathlib

import pandas as pd

from src.measurement_io.schema import MeasurementRecord

logger = logging.getLogger(__name__)


class DuplicateIdentifierError(ValueError):
    """Raised when a measurement table repeats a subject identifier."""

    def __init__(self, id_col: str, duplicates: list):
        self.id_col = id_col
        self.duplicates = duplicates
        preview = ", ".join(str(d) for d in duplicates[:10])
        if len(duplicates) > 10:
            preview += ", ..."
        super().__init__(
            f"Column '{id_col}' has {len(duplicates)} repeated identifier(s): {preview}"
        )


def read_measurement_csv(path, id_col, value_cols=None, na_values=None):
    """
    Read a measurement table from CSV and coerce measurement columns to numbers.

    Parameters
    ----------
    path : str or pathlib.Path
        CSV file to read.
    id_col : str
        Subject identifier column. Read as string with surrounding whitespace
        stripped; empty identifiers become missing.
    value_cols : list of str, optional
        Measurement columns to keep and coerce. Defaults to every column
        except ``id_col``.
    na_values : list of str, optional
        Extra strings to treat as missing, in addition to the pandas defaults.

    Returns
    -------
    pd.DataFrame
        ``id_col`` followed by the value columns as float64. Cells that cannot
        be parsed as numbers are set to NaN and counted in a warning.

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist.
    KeyError
        If ``id_col`` or any of ``value_cols`` is missing from the file.
    """
    path = pathlib.Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Measurement file not found: {path}")

    # Read everything as text so identifiers keep leading zeros; values are coerced below
    df = pd.read_csv(path, dtype=str, na_values=na_values)

    if id_col not in df.columns:
        raise KeyError(f"Identifier column '{id_col}' not found in {path.name}")

    if value_cols is None:
        value_cols = [c for c in df.columns if c != id_col]
    else:
        missing = [c for c in value_cols if c not in df.columns]
        if missing:
            raise KeyError(f"Value column(s) {missing} not found in {path.name}")

    out = df[[id_col, *value_cols]].copy()
    out[id_col] = out[id_col].str.strip().replace("", pd.NA)

    for col in value_cols:
        coerced = pd.to_numeric(out[col].str.strip(), errors="coerce")
        n_coerced = int((coerced.isna() & out[col].notna()).sum())
        if n_coerced:
            logger.warning(f"{path.name}: {n_coerced} non-numeric value(s) in '{col}' set to missing")
        out[col] = coerced.astype(float)

    logger.info(f"Read {len(out)} rows with {len(value_cols)} value column(s) from {path.name}")
    return out


def check_unique_identifiers(df: pd.DataFrame, id_col: str) -> None:
    """Raise DuplicateIdentifierError if ``id_col`` repeats a non-missing identifier."""
    ids = df[id_col].dropna()
    duplicated = ids[ids.duplicated()].unique().tolist()
    if duplicated:
        raise DuplicateIdentifierError(id_col, duplicated)


def records_to_frame(
    records, id_col: str = "subject_id", value_col: str = "value"
) -> pd.DataFrame:
    """Build a measurement table from MeasurementRecord objects or plain dicts."""
    rows = []
    for record in records:
        if not isinstance(record, MeasurementRecord):
            record = MeasurementRecord.model_validate(record)
        rows.append({id_col: record.subject_id, value_col: record.value})
    return pd.DataFrame(rows, columns=[id_col, value_col]).astype({value_col: float})


def frame_to_records(
    df: pd.DataFrame, id_col: str = "subject_id", value_col: str = "value"
) -> list[MeasurementRecord]:
    """Convert a measurement table into MeasurementRecord objects; missing values become None."""
    return [
        MeasurementRecord(
            subject_id=str(subject_id),
            value=None if pd.isna(value) else float(value),
        )
        for subject_id, value in zip(df[id_col], df[value_col])
        if not pd.isna(subject_id)
    ]

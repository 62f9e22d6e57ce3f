import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
from scipy.stats import norm

from src.measurement_io.reader import check_unique_identifiers, records_to_frame

logger = logging.getLogger(__name__)

# Two-sided 95% coverage under a normal distribution
LOA_MULTIPLIER = 1.96

PAIRED_COLUMNS = ["subject_id", "value_a", "value_b", "difference", "average"]

NAN_POLICIES = ("omit", "raise")


class UndefinedStatisticError(ValueError):
    """Raised when bias or sd cannot be computed from the present differences."""


@dataclass(frozen=True)
class PairedRecord:
    """One subject measured by both methods."""

    subject_id: str
    value_a: float
    value_b: float
    difference: float
    average: float


@dataclass(frozen=True)
class AgreementSummary:
    """Bias and limits of agreement for one quantity and method pair."""

    bias: float
    sd: float
    lower_loa: float
    upper_loa: float
    n: int
    n_missing: int = 0
    multiplier: float = LOA_MULTIPLIER


def multiplier_for_coverage(coverage: float) -> float:
    """
    Return the normal quantile multiplier for a two-sided coverage level.

    ``multiplier_for_coverage(0.95)`` is 1.959963..., which ``LOA_MULTIPLIER``
    rounds to 1.96.
    """
    if not 0 < coverage < 1:
        raise ValueError("coverage must be strictly between 0 and 1")
    return float(norm.ppf(0.5 + coverage / 2))


def limits_of_agreement(bias: float, sd: float, multiplier: float = LOA_MULTIPLIER):
    """Return (lower, upper) limits of agreement."""
    return bias - multiplier * sd, bias + multiplier * sd


def to_paired_records(paired: pd.DataFrame) -> list[PairedRecord]:
    """Convert a paired table into a list of PairedRecord."""
    return [
        PairedRecord(
            subject_id=row.subject_id,
            value_a=float(row.value_a),
            value_b=float(row.value_b),
            difference=float(row.difference),
            average=float(row.average),
        )
        for row in paired[PAIRED_COLUMNS].itertuples(index=False)
    ]


class PairedMeasurementComparator:
    """
    Join two measurement tables on a subject identifier and derive the
    Bland-Altman agreement statistics.

    Parameters
    ----------
    id_col : str
        Name of the subject identifier column in both input tables.
    multiplier : float, optional
        Multiplier applied to the sd of differences for the limits of
        agreement. Defaults to 1.96.
    validate_unique : bool, optional
        If True (default), ``join`` raises DuplicateIdentifierError when an
        input table repeats a subject identifier. If False, duplicates are
        joined as-is and every pairing of duplicates yields a row.
    """

    def __init__(
        self,
        id_col: str = "subject_id",
        multiplier: float = LOA_MULTIPLIER,
        validate_unique: bool = True,
    ):
        if not multiplier > 0:
            raise ValueError("multiplier must be positive")
        self.id_col = id_col
        self.multiplier = multiplier
        self.validate_unique = validate_unique

    def join(
        self,
        table_a,
        table_b,
        value_col: str = "value",
        value_col_b: str | None = None,
    ) -> pd.DataFrame:
        """
        Inner-join two measurement tables on the identifier column.

        Parameters
        ----------
        table_a, table_b : pd.DataFrame or list of MeasurementRecord
            Tables holding ``id_col`` and the measurement column(s). Record
            collections are converted with ``records_to_frame``.
        value_col : str, optional
            Measurement column in ``table_a`` (and ``table_b`` unless
            ``value_col_b`` is given).
        value_col_b : str, optional
            Measurement column in ``table_b``.

        Returns
        -------
        pd.DataFrame
            Columns subject_id, value_a, value_b, difference, average. Subjects
            absent from either table, or with a missing value in either, are
            not emitted. May be empty.

        Raises
        ------
        KeyError
            If a required column is missing.
        DuplicateIdentifierError
            If ``validate_unique`` is set and an identifier is repeated.
        """
        value_col_b = value_col_b or value_col

        if not isinstance(table_a, pd.DataFrame):
            table_a = records_to_frame(table_a, self.id_col, value_col)
        if not isinstance(table_b, pd.DataFrame):
            table_b = records_to_frame(table_b, self.id_col, value_col_b)

        for name, table, col in (("table_a", table_a, value_col), ("table_b", table_b, value_col_b)):
            missing = [c for c in (self.id_col, col) if c not in table.columns]
            if missing:
                raise KeyError(f"{name} is missing column(s): {missing}")

        if self.validate_unique:
            check_unique_identifiers(table_a, self.id_col)
            check_unique_identifiers(table_b, self.id_col)

        # pandas matches missing keys with each other, so drop them before merging.
        # Identifiers are compared as strings so int and str key columns still join.
        left = (
            table_a[[self.id_col, value_col]]
            .rename(columns={self.id_col: "subject_id", value_col: "value_a"})
            .dropna()
            .astype({"subject_id": str})
        )
        right = (
            table_b[[self.id_col, value_col_b]]
            .rename(columns={self.id_col: "subject_id", value_col_b: "value_b"})
            .dropna()
            .astype({"subject_id": str})
        )

        paired = left.merge(right, on="subject_id", how="inner")
        paired = paired.astype({"value_a": float, "value_b": float})

        paired["difference"] = paired["value_a"] - paired["value_b"]
        paired["average"] = 0.5 * (paired["value_a"] + paired["value_b"])

        logger.debug(
            f"Joined {len(table_a)} x {len(table_b)} rows into {len(paired)} paired records"
        )
        return paired[PAIRED_COLUMNS].reset_index(drop=True)

    def summarize(
        self,
        paired: pd.DataFrame,
        accessor="difference",
        nan_policy: str = "omit",
    ) -> AgreementSummary:
        """
        Compute bias, sd and limits of agreement from paired differences.

        Parameters
        ----------
        paired : pd.DataFrame
            Output of ``join``.
        accessor : str or callable, optional
            Column name of the differences, or a function taking ``paired``
            and returning them. Defaults to "difference".
        nan_policy : {"omit", "raise"}, optional
            "omit" excludes missing differences from the mean and sd and
            reports how many were dropped in ``n_missing``. "raise" rejects
            any missing difference with ValueError.

        Raises
        ------
        UndefinedStatisticError
            If fewer than two differences are present.
        """
        if nan_policy not in NAN_POLICIES:
            raise ValueError(f"nan_policy must be one of {NAN_POLICIES}, got {nan_policy!r}")

        if callable(accessor):
            values = accessor(paired)
        else:
            values = paired[accessor]
        values = np.asarray(values, dtype=float)

        missing_mask = np.isnan(values)
        n_missing = int(missing_mask.sum())
        if n_missing and nan_policy == "raise":
            raise ValueError(f"{n_missing} missing difference value(s) with nan_policy='raise'")

        present = values[~missing_mask]
        if len(present) == 0:
            raise UndefinedStatisticError("No present differences: bias and sd are undefined")
        if len(present) < 2:
            raise UndefinedStatisticError(
                "At least 2 present differences are needed for the sample sd"
            )

        bias = float(np.mean(present))
        sd = float(np.std(present, ddof=1))
        lower, upper = limits_of_agreement(bias, sd, self.multiplier)

        if n_missing:
            logger.info(f"Excluded {n_missing} missing difference(s) from summary")

        return AgreementSummary(
            bias=bias,
            sd=sd,
            lower_loa=lower,
            upper_loa=upper,
            n=len(present),
            n_missing=n_missing,
            multiplier=self.multiplier,
        )

import logging
from dataclasses import dataclass

import pandas as pd

from src.method_comparison.comparator import (
    AgreementSummary,
    PairedMeasurementComparator,
    UndefinedStatisticError,
)

logger = logging.getLogger(__name__)


@dataclass
class AgreementResult:
    """Join and summary for one measured quantity."""

    quantity: str
    method_a: str
    method_b: str
    paired: pd.DataFrame
    summary: AgreementSummary | None = None
    error: str | None = None

    @property
    def n_pairs(self) -> int:
        return len(self.paired)


def run_agreement_pipeline(
    table_a,
    table_b,
    quantities,
    id_col="subject_id",
    method_a="A",
    method_b="B",
    comparator=None,
):
    """
    Run the Bland-Altman comparison for each measured quantity.

    Parameters
    ----------
    table_a, table_b : pd.DataFrame
        Measurement tables from the two methods, one row per subject.
    quantities : list of str
        Measurement columns present in both tables.
    id_col : str, optional
        Subject identifier column. Ignored if ``comparator`` is given.
    method_a, method_b : str, optional
        Display labels of the two methods.
    comparator : PairedMeasurementComparator, optional
        Configured comparator. Defaults to one with ``id_col`` and the
        standard 1.96 multiplier.

    Returns
    -------
    dict
        Maps each quantity to its AgreementResult. A quantity whose summary is
        undefined keeps its paired table, has ``summary=None`` and the reason
        in ``error``.

    Raises
    ------
    ValueError
        If no quantities are given.
    KeyError
        If a quantity is missing from either table.
    DuplicateIdentifierError
        If the comparator validates identifiers and one is repeated.
    """
    if not quantities:
        raise ValueError("At least one quantity is required")

    comparator = comparator or PairedMeasurementComparator(id_col=id_col)

    for name, table in (("table_a", table_a), ("table_b", table_b)):
        missing = [q for q in quantities if q not in table.columns]
        if missing:
            raise KeyError(f"{name} is missing quantity column(s): {missing}")

    out = {}

    for quantity in quantities:
        paired = comparator.join(table_a, table_b, value_col=quantity)
        logger.info(f"{quantity}: {len(paired)} paired subject(s)")

        result = AgreementResult(
            quantity=quantity,
            method_a=method_a,
            method_b=method_b,
            paired=paired,
        )

        try:
            result.summary = comparator.summarize(paired)
            logger.debug(
                f"{quantity}: bias={result.summary.bias:.4f}, "
                f"LoA=[{result.summary.lower_loa:.4f}, {result.summary.upper_loa:.4f}]"
            )
        except UndefinedStatisticError as e:
            result.error = str(e)
            logger.warning(f"{quantity}: {e}")

        out[quantity] = result

    return out

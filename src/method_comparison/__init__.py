"""Bland-Altman method comparison of paired measurements."""

from src.method_comparison.accumulator import DifferenceAccumulator, summarize_partitions
from src.method_comparison.comparator import (
    LOA_MULTIPLIER,
    AgreementSummary,
    PairedMeasurementComparator,
    PairedRecord,
    UndefinedStatisticError,
    limits_of_agreement,
    multiplier_for_coverage,
    to_paired_records,
)
from src.method_comparison.pipeline import AgreementResult, run_agreement_pipeline
from src.method_comparison.report import ReportCollector, generate_markdown_report
from src.method_comparison.utils import rowwise_reduce

__all__ = [
    # Main pipeline
    "AgreementResult",
    "run_agreement_pipeline",
    # Comparator
    "LOA_MULTIPLIER",
    "AgreementSummary",
    "PairedMeasurementComparator",
    "PairedRecord",
    "UndefinedStatisticError",
    "limits_of_agreement",
    "multiplier_for_coverage",
    "to_paired_records",
    # Partitioned reduction
    "DifferenceAccumulator",
    "summarize_partitions",
    # Report generation
    "ReportCollector",
    "generate_markdown_report",
    # Utilities
    "rowwise_reduce",
]

"""
Report generation for method comparison results.

This module collects agreement results for several measured quantities and
writes them out as a single Markdown report.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class QuantityResult:
    """Agreement statistics for one quantity, flattened for reporting."""

    quantity: str
    method_a: str
    method_b: str
    n_pairs: int = 0
    n_missing: int = 0
    bias: float = None
    sd: float = None
    lower_loa: float = None
    upper_loa: float = None
    multiplier: float = None
    plot_path: str = None
    error: str = None


class ReportCollector:
    """Collects agreement results for report generation."""

    def __init__(self):
        self.results: list[QuantityResult] = []

    def add_result(self, result, plot_path: str = None, error: str = None):
        """
        Add the agreement result of one quantity.

        Parameters
        ----------
        result : AgreementResult
            Output entry of run_agreement_pipeline.
        plot_path : str, optional
            Path to saved plot image.
        error : str, optional
            Error message overriding the one carried by ``result``.
        """
        entry = QuantityResult(
            quantity=result.quantity,
            method_a=result.method_a,
            method_b=result.method_b,
            n_pairs=result.n_pairs,
            error=error or result.error,
        )

        summary = result.summary
        if summary is not None and entry.error is None:
            entry.n_missing = summary.n_missing
            entry.bias = summary.bias
            entry.sd = summary.sd
            entry.lower_loa = summary.lower_loa
            entry.upper_loa = summary.upper_loa
            entry.multiplier = summary.multiplier
            entry.plot_path = plot_path

        self.results.append(entry)

    def get_summary_stats(self) -> dict:
        """
        Count results by outcome.

        Returns
        -------
        dict
            Number of quantities, successful and failed summaries, and total
            paired subjects.
        """
        successful = [r for r in self.results if r.error is None]

        return {
            "total_quantities": len(self.results),
            "successful_summaries": len(successful),
            "failed_summaries": len(self.results) - len(successful),
            "total_pairs": sum(r.n_pairs for r in self.results),
        }


def _fmt(value) -> str:
    return f"{value:.4f}" if value is not None else "-"


def generate_markdown_report(collector: ReportCollector, output_path: str) -> str:
    """
    Generate a Markdown report from collected agreement results.

    Parameters
    ----------
    collector : ReportCollector
        Collector containing agreement results.
    output_path : str
        Path to save the Markdown report.

    Returns
    -------
    str
        Path to the generated report.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    stats = collector.get_summary_stats()
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

    lines = []

    # Header
    lines.append("# Method Agreement Report")
    lines.append("")
    lines.append(f"**Generated:** {timestamp}")
    lines.append("")

    # Summary section
    lines.append("## Summary")
    lines.append("")
    lines.append(f"- **Quantities compared:** {stats['total_quantities']}")
    lines.append(f"- **Successful summaries:** {stats['successful_summaries']}")
    lines.append(f"- **Failed summaries:** {stats['failed_summaries']}")
    lines.append(f"- **Paired subjects (all quantities):** {stats['total_pairs']}")
    lines.append("")

    # Results table
    lines.append("## Results Overview")
    lines.append("")
    lines.append("| Quantity | Methods | N | Bias | SD | Lower LoA | Upper LoA | Status |")
    lines.append("|:---------|:--------|:--|:-----|:---|:----------|:----------|:-------|")

    for r in collector.results:
        status = "Error" if r.error else "OK"
        lines.append(
            f"| {r.quantity} | {r.method_a} vs {r.method_b} | {r.n_pairs} | {_fmt(r.bias)} "
            f"| {_fmt(r.sd)} | {_fmt(r.lower_loa)} | {_fmt(r.upper_loa)} | {status} |"
        )

    lines.append("")

    # Detailed results section
    lines.append("## Detailed Results")
    lines.append("")

    for r in collector.results:
        lines.append(f"### {r.quantity}")
        lines.append("")
        lines.append(f"**Methods:** {r.method_a} vs {r.method_b}")
        lines.append("")
        lines.append(f"**Paired subjects:** {r.n_pairs}")
        lines.append("")

        if r.error:
            lines.append(f"**Error:** {r.error}")
            lines.append("")
            continue

        lines.append("**Agreement:**")
        lines.append(f"- Bias: {_fmt(r.bias)}")
        lines.append(f"- SD of differences: {_fmt(r.sd)}")
        lines.append(
            f"- Limits of agreement (bias ± {r.multiplier:g}·SD): "
            f"[{_fmt(r.lower_loa)}, {_fmt(r.upper_loa)}]"
        )
        if r.n_missing:
            lines.append(f"- Missing differences excluded: {r.n_missing}")
        lines.append("")

        if r.plot_path:
            # Use relative path from report location
            plot_rel_path = Path(r.plot_path).name
            lines.append(
                f'<img src="figures/{plot_rel_path}" alt="Bland-Altman plot for {r.quantity}" height="200">'
            )
            lines.append("")

    report_content = "\n".join(lines)
    output_path.write_text(report_content)

    logger.info(f"Report generated: {output_path}")
    return str(output_path)

import argparse
import json
import logging
import os
import pathlib
import sys
from datetime import datetime

from dotenv import load_dotenv

load_dotenv()

from pydantic import ValidationError

from src.database import add_run_from_result, get_all_runs, init_db
from src.database.models import RunStatus
from src.measurement_io import (
    ComparisonConfig,
    DuplicateIdentifierError,
    load_comparison_config,
    read_measurement_csv,
)
from src.method_comparison.comparator import LOA_MULTIPLIER, PairedMeasurementComparator
from src.method_comparison.pipeline import run_agreement_pipeline
from src.method_comparison.plotting import plot_agreement_results, plot_bland_altman
from src.method_comparison.report import ReportCollector, generate_markdown_report


def configure_logging(log_level: str):
    """Configure logging with the specified level."""
    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        force=True,
    )
    return logging.getLogger(__name__)


def get_default_multiplier() -> float:
    """Limits of agreement multiplier, overridable via AGREEMENT_CHECKER_LOA_MULTIPLIER."""
    raw = os.getenv("AGREEMENT_CHECKER_LOA_MULTIPLIER")
    if raw is None:
        return LOA_MULTIPLIER
    try:
        multiplier = float(raw)
    except ValueError:
        raise SystemExit(f"Invalid AGREEMENT_CHECKER_LOA_MULTIPLIER: {raw!r}")
    if not multiplier > 0:
        raise SystemExit(f"Invalid AGREEMENT_CHECKER_LOA_MULTIPLIER: {raw!r} (must be positive)")
    return multiplier


def _resolve_config(args) -> ComparisonConfig:
    """Build the comparison config from --config or the individual flags."""
    if args.config:
        try:
            return load_comparison_config(args.config)
        except FileNotFoundError:
            raise SystemExit(f"Config file not found: {args.config}")
        except (ValidationError, json.JSONDecodeError) as e:
            raise SystemExit(f"Invalid config {args.config}:\n{e}")

    missing = [
        flag
        for flag, value in (
            ("--table-a", args.table_a),
            ("--table-b", args.table_b),
            ("--id-col", args.id_col),
            ("--quantity", args.quantity),
        )
        if not value
    ]
    if missing:
        raise SystemExit(f"Missing required arguments (or use --config): {', '.join(missing)}")

    return ComparisonConfig(
        table_a=args.table_a,
        table_b=args.table_b,
        id_col=args.id_col,
        quantities=args.quantity,
        method_a=args.method_a,
        method_b=args.method_b,
        multiplier=get_default_multiplier(),
        validate_unique=not args.allow_duplicates,
    )


def cmd_compare(args):
    """Run the Bland-Altman comparison between two measurement tables."""
    logger = configure_logging(args.log_level)
    config = _resolve_config(args)

    report_collector = ReportCollector() if args.report else None
    report_plots_enabled = args.report and args.report_plots

    if args.report:
        if args.report is True:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            report_path = pathlib.Path(f"reports/agreement_report_{timestamp}.md")
        else:
            report_path = pathlib.Path(args.report)

        if report_plots_enabled:
            figures_dir = report_path.parent / "figures"
            figures_dir.mkdir(parents=True, exist_ok=True)

    try:
        table_a = read_measurement_csv(config.table_a, config.id_col, config.quantities)
        table_b = read_measurement_csv(config.table_b, config.id_col, config.quantities)
    except (FileNotFoundError, KeyError) as e:
        raise SystemExit(f"Could not read measurements: {e}")

    comparator = PairedMeasurementComparator(
        id_col=config.id_col,
        multiplier=config.multiplier,
        validate_unique=config.validate_unique,
    )

    try:
        results = run_agreement_pipeline(
            table_a,
            table_b,
            config.quantities,
            method_a=config.method_a,
            method_b=config.method_b,
            comparator=comparator,
        )
    except DuplicateIdentifierError as e:
        raise SystemExit(f"{e} (use --allow-duplicates to join anyway)")

    logger.info(f"Compared {len(results)} quantity(ies)")

    if args.save:
        init_db()

    for quantity, result in results.items():
        if result.summary is not None:
            s = result.summary
            logger.info(
                f"{quantity}: n={s.n}, bias={s.bias:.4f}, sd={s.sd:.4f}, "
                f"LoA=[{s.lower_loa:.4f}, {s.upper_loa:.4f}]"
            )
        else:
            logger.error(f"{quantity}: {result.error}")

        plot_path = None
        if report_plots_enabled and result.summary is not None:
            plot_path = str(figures_dir / f"{quantity}_bland_altman.png")
            try:
                plot_bland_altman(result, save_path=plot_path)
            except Exception as e:
                logger.error(f"Plotting failed for {quantity}: {str(e)}")
                plot_path = None

        if report_collector:
            report_collector.add_result(result, plot_path=plot_path)

        if args.save:
            run = add_run_from_result(result)
            logger.debug(f"Saved run {run.id} for {quantity}")

    if args.plot:
        try:
            plot_agreement_results(results)
        except RuntimeError as e:
            logger.error(f"Plotting failed: {str(e)}")

    if report_collector:
        generate_markdown_report(report_collector, str(report_path))
        logger.info(f"Report generated: {report_path}")


def cmd_list(args):
    """List stored agreement runs."""
    init_db()

    status_filter = None
    if args.status:
        status_filter = RunStatus(args.status)

    runs = get_all_runs(status=status_filter, quantity=args.quantity)

    if not runs:
        print("No agreement runs found in database.")
        return

    print(
        f"\n{'ID':<6} {'Status':<8} {'Quantity':<16} {'Methods':<24} {'N':<6} "
        f"{'Bias':>10} {'Lower LoA':>10} {'Upper LoA':>10}  {'Created At'}"
    )
    print("-" * 110)

    for run in runs:
        methods = f"{run.method_a} vs {run.method_b}"
        if len(methods) > 24:
            methods = methods[:21] + "..."
        created_at = run.created_at.strftime("%Y-%m-%d %H:%M") if run.created_at else "N/A"
        bias = f"{run.bias:.4f}" if run.bias is not None else "-"
        lower = f"{run.lower_loa:.4f}" if run.lower_loa is not None else "-"
        upper = f"{run.upper_loa:.4f}" if run.upper_loa is not None else "-"
        print(
            f"{run.id:<6} {run.status.value:<8} {run.quantity:<16} {methods:<24} {run.n:<6} "
            f"{bias:>10} {lower:>10} {upper:>10}  {created_at}"
        )

    print(f"\nTotal: {len(runs)} run(s)")


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Agreement Checker - Bland-Altman method comparison tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Compare command
    compare_parser = subparsers.add_parser(
        "compare", help="Compare two measurement methods on paired subjects"
    )
    compare_parser.add_argument("--table-a", help="CSV file with measurements from method A")
    compare_parser.add_argument("--table-b", help="CSV file with measurements from method B")
    compare_parser.add_argument("--id-col", help="Subject identifier column in both tables")
    compare_parser.add_argument(
        "--quantity",
        action="append",
        help="Measurement column to compare (repeat for several quantities)",
    )
    compare_parser.add_argument("--method-a", default="A", help="Label for method A (default: A)")
    compare_parser.add_argument("--method-b", default="B", help="Label for method B (default: B)")
    compare_parser.add_argument(
        "--config",
        help="JSON comparison config. Replaces the table, column and method flags.",
    )
    compare_parser.add_argument(
        "--allow-duplicates",
        action="store_true",
        help="Join even if a table repeats a subject identifier",
    )
    compare_parser.add_argument(
        "--plot",
        action="store_true",
        help="Show Bland-Altman plots interactively",
    )
    compare_parser.add_argument(
        "--report",
        nargs="?",
        const=True,
        default=False,
        metavar="PATH",
        help="Generate a Markdown report. Optionally specify output path (default: reports/agreement_report_<timestamp>.md)",
    )
    compare_parser.add_argument(
        "--report-plots",
        action="store_true",
        help="Include plots in the report (requires --report)",
    )
    compare_parser.add_argument(
        "--save",
        action="store_true",
        help="Store the agreement summaries in the database",
    )
    compare_parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set logging level (default: INFO)",
    )
    compare_parser.set_defaults(func=cmd_compare)

    # List command
    list_parser = subparsers.add_parser("list", help="List stored agreement runs")
    list_parser.add_argument(
        "--status",
        choices=["success", "failed"],
        help="Filter by run status",
    )
    list_parser.add_argument("--quantity", help="Filter by measured quantity")
    list_parser.set_defaults(func=cmd_list)

    args = parser.parse_args(sys.argv[1:] if argv is None else argv)

    if args.command is None:
        parser.print_help()
        return

    args.func(args)


if __name__ == "__main__":
    main()

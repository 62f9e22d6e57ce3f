import logging

import matplotlib.pyplot as plt

logger = logging.getLogger(__name__)


def _plot_bland_altman_axes(ax, result):
    """
    Draw a Bland-Altman scatter of average vs difference on an axes.

    Parameters
    ----------
    ax : matplotlib.axes.Axes
        Axes object to plot on.
    result : AgreementResult
        Result with a paired table and a summary.
    """
    paired = result.paired
    summary = result.summary

    ax.scatter(paired["average"], paired["difference"], alpha=0.6, label="Subjects")
    ax.axhline(summary.bias, color="r", linewidth=2, label=f"Bias ({summary.bias:.2f})")
    ax.axhline(
        summary.upper_loa,
        color="gray",
        linestyle="--",
        label=f"Upper LoA ({summary.upper_loa:.2f})",
    )
    ax.axhline(
        summary.lower_loa,
        color="gray",
        linestyle="--",
        label=f"Lower LoA ({summary.lower_loa:.2f})",
    )
    ax.set_xlabel(f"Mean of {result.method_a} and {result.method_b}")
    ax.set_ylabel(f"{result.method_a} - {result.method_b}")
    ax.set_title(f"Bland-Altman: {result.quantity}")
    ax.grid(True, alpha=0.3)
    ax.legend(fontsize="small")


def _finish(fig, save_path):
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches="tight")
        plt.close(fig)
        logger.info(f"Plot saved to {save_path}")
    else:
        plt.show()


def plot_bland_altman(result, save_path: str = None):
    """
    Plot the Bland-Altman chart for a single quantity.

    Parameters
    ----------
    result : AgreementResult
        Output entry of run_agreement_pipeline.
    save_path : str, optional
        Path to save the plot image. If None, displays the plot interactively.

    Raises
    ------
    RuntimeError
        If the result has no summary to draw.
    """
    if result.summary is None:
        raise RuntimeError(f"No agreement summary for {result.quantity}: {result.error}")

    fig, ax = plt.subplots(1, 1, figsize=(6, 5))
    _plot_bland_altman_axes(ax, result)
    _finish(fig, save_path)


def plot_agreement_results(results: dict, save_path: str = None):
    """
    Plot one Bland-Altman chart per quantity side by side.

    Quantities without a summary are skipped with a warning.

    Parameters
    ----------
    results : dict
        Output of run_agreement_pipeline.
    save_path : str, optional
        Path to save the plot image. If None, displays the plot interactively.

    Raises
    ------
    RuntimeError
        If no result has a summary to draw.
    """
    plottable = [r for r in results.values() if r.summary is not None]
    skipped = [q for q, r in results.items() if r.summary is None]

    if skipped:
        logger.warning(f"Skipping quantities without a summary: {skipped}")

    if len(plottable) == 0:
        raise RuntimeError(f"No plottable results found. Check results = {list(results.keys())}.")

    num_plots = len(plottable)
    fig, axes = plt.subplots(1, num_plots, figsize=(6 * num_plots, 5))

    if num_plots == 1:
        axes = [axes]

    for ax, result in zip(axes, plottable):
        _plot_bland_altman_axes(ax, result)

    _finish(fig, save_path)

"""
Mergeable running statistics for paired differences.

Large paired tables can be split into partitions, reduced independently and
combined afterwards. ``merge`` is associative and commutative, so partial
accumulators can be combined in any order.
"""

import logging
from dataclasses import dataclass

import numpy as np

from src.method_comparison.comparator import (
    LOA_MULTIPLIER,
    AgreementSummary,
    UndefinedStatisticError,
    limits_of_agreement,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DifferenceAccumulator:
    """Count, mean and sum of squared deviations (M2) of present differences."""

    count: int = 0
    mean: float = 0.0
    m2: float = 0.0
    n_missing: int = 0

    def update(self, values) -> "DifferenceAccumulator":
        """Return a new accumulator that also covers ``values``; NaNs are counted as missing."""
        values = np.asarray(values, dtype=float).ravel()
        missing_mask = np.isnan(values)
        present = values[~missing_mask]

        batch = DifferenceAccumulator(n_missing=int(missing_mask.sum()))
        if len(present) > 0:
            batch_mean = float(np.mean(present))
            batch = DifferenceAccumulator(
                count=len(present),
                mean=batch_mean,
                m2=float(np.sum((present - batch_mean) ** 2)),
                n_missing=batch.n_missing,
            )
        return self.merge(batch)

    def merge(self, other: "DifferenceAccumulator") -> "DifferenceAccumulator":
        """Combine two accumulators (Chan et al. pairwise update)."""
        n_missing = self.n_missing + other.n_missing
        if other.count == 0:
            return DifferenceAccumulator(self.count, self.mean, self.m2, n_missing)
        if self.count == 0:
            return DifferenceAccumulator(other.count, other.mean, other.m2, n_missing)

        count = self.count + other.count
        delta = other.mean - self.mean
        mean = self.mean + delta * other.count / count
        m2 = self.m2 + other.m2 + delta**2 * self.count * other.count / count
        return DifferenceAccumulator(count, mean, m2, n_missing)

    def to_summary(self, multiplier: float = LOA_MULTIPLIER) -> AgreementSummary:
        if self.count == 0:
            raise UndefinedStatisticError("No present differences: bias and sd are undefined")
        if self.count < 2:
            raise UndefinedStatisticError(
                "At least 2 present differences are needed for the sample sd"
            )

        sd = float(np.sqrt(self.m2 / (self.count - 1)))
        lower, upper = limits_of_agreement(self.mean, sd, multiplier)
        return AgreementSummary(
            bias=self.mean,
            sd=sd,
            lower_loa=lower,
            upper_loa=upper,
            n=self.count,
            n_missing=self.n_missing,
            multiplier=multiplier,
        )


def summarize_partitions(partitions, multiplier: float = LOA_MULTIPLIER) -> AgreementSummary:
    """
    Summarize differences given as independent partitions.

    Parameters
    ----------
    partitions : iterable
        Each item is an array-like of differences or a DifferenceAccumulator
        already reduced elsewhere.
    multiplier : float, optional
        Limits of agreement multiplier. Defaults to 1.96.

    Returns
    -------
    AgreementSummary
        Equal (within floating-point tolerance) to summarizing the
        concatenated differences in one pass.
    """
    total = DifferenceAccumulator()
    n_partitions = 0
    for part in partitions:
        if not isinstance(part, DifferenceAccumulator):
            part = DifferenceAccumulator().update(part)
        total = total.merge(part)
        n_partitions += 1

    logger.debug(f"Merged {n_partitions} partition(s) covering {total.count} differences")
    return total.to_summary(multiplier)

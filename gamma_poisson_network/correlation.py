"""
Estimation of network correlation and social differentiation.

Fits the Gamma-Poisson model to an observed interaction network and reports
how well the observed network is expected to reflect the true one.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .data import extract_dyads
from .diagnostics import QQDiagnostic, qq_quantiles
from .inference import FitResult, compute_summary, fit_negative_binomial, sample_parameters
from .model import harmonic_mean, network_correlation
from .rng import as_generator

ROW_NAMES = (
    "Observed Social Differentiation",
    "Mean Interaction Rate",
    "Sampling Effort",
    "Est. Interaction Rate",
    "Est. Social Differentiation",
    "Est. Correlation",
)


def signif(value: float | None, digits: int = 3) -> float | None:
    """Round to ``digits`` significant figures; None and non-finite values pass through."""
    if value is None or not np.isfinite(value) or value == 0:
        return value
    return float(f"{value:.{digits}g}")


@dataclass(frozen=True)
class SummaryRow:
    """
    One row of the summary table.

    ``se``, ``lower`` and ``upper`` are None for purely observed statistics,
    which are point values rather than model-based estimates.
    """
    name: str
    estimate: float
    se: float | None = None
    lower: float | None = None
    upper: float | None = None

    def rounded(self, digits: int = 3) -> "SummaryRow":
        return SummaryRow(
            self.name,
            signif(self.estimate, digits),
            signif(self.se, digits),
            signif(self.lower, digits),
            signif(self.upper, digits),
        )


@dataclass(frozen=True)
class CorrelationSummary:
    """
    Summary table of network properties.

    Attributes:
        rows: The six summary rows, in ROW_NAMES order, rounded to three
              significant figures.
        ci: Width of the confidence intervals.
        fit: The underlying maximum-likelihood fit.
        diagnostic: QQ comparison of observed and fitted count distributions,
                    when requested.
    """
    rows: tuple[SummaryRow, ...]
    ci: float
    fit: FitResult
    diagnostic: QQDiagnostic | None = None

    def __getitem__(self, name: str) -> SummaryRow:
        for row in self.rows:
            if row.name == name:
                return row
        raise KeyError(name)

    @property
    def observed_social_differentiation(self) -> SummaryRow:
        return self.rows[0]

    @property
    def mean_interaction_rate(self) -> SummaryRow:
        return self.rows[1]

    @property
    def sampling_effort(self) -> SummaryRow:
        return self.rows[2]

    @property
    def interaction_rate(self) -> SummaryRow:
        return self.rows[3]

    @property
    def social_differentiation(self) -> SummaryRow:
        return self.rows[4]

    @property
    def correlation(self) -> SummaryRow:
        return self.rows[5]

    def to_dict(self) -> dict[str, dict[str, float | None]]:
        return {
            row.name: {"Estimate": row.estimate, "SE": row.se, "Lower CI": row.lower, "Upper CI": row.upper}
            for row in self.rows
        }

    def __str__(self) -> str:
        def fmt(v):
            return "NA" if v is None else f"{v:.3g}"

        width = max(len(name) for name in ROW_NAMES)
        lines = [f"{'':<{width}}  {'Estimate':>9} {'SE':>9} {'Lower CI':>9} {'Upper CI':>9}"]
        for row in self.rows:
            lines.append(
                f"{row.name:<{width}}  {fmt(row.estimate):>9} {fmt(row.se):>9} "
                f"{fmt(row.lower):>9} {fmt(row.upper):>9}"
            )
        return "\n".join(lines)


def estimate_correlation(
    X,
    D,
    directed: bool = False,
    ci: float = 0.95,
    num_samples: int = 100_000,
    diagnostic: bool = False,
    rng=None,
) -> CorrelationSummary:
    """
    Estimate network correlation and social differentiation for an interaction network.

    The Gamma-Poisson model is fitted by maximum likelihood, and parameter
    uncertainty is propagated to social differentiation S = 1/√a, the
    interaction rate μ = a/b, the sampling effort I = μ·H(d) (H the harmonic
    mean of sampling times) and the network correlation
    ρ = S·√I / √(1 + S²·I) through draws from the Laplace approximation.

    Only works with interaction-rate networks.

    Args:
        X: n x n integer matrix with zero diagonal; entry (i, j) is the number
           of observed interactions between i and j.
        D: n x n positive matrix with zero diagonal; entry (i, j) is the time
           spent sampling i and j.
        directed: Whether the network is directed.
        ci: Width of the confidence intervals, in (0, 1).
        num_samples: Number of Laplace-approximation draws.
        diagnostic: Also compute the QQ comparison of observed counts against
                    the fitted model (see ``plot_qq``).
        rng: Seed or numpy Generator.

    Returns:
        CorrelationSummary.

    Raises:
        ValueError: Invalid matrices or arguments.
        UncertaintyPropagationError: The fit does not support a Laplace
            approximation (non-convergence or non-positive-definite Hessian).

    Example:
        >>> data = simulate_data(20, 10, 0.25, 0.5, rng=1)
        >>> print(estimate_correlation(data.X, data.D, rng=1))
    """
    ci = float(ci)
    if not 0.0 < ci < 1.0:
        raise ValueError(f"ci must be in (0, 1), got {ci}")
    rng = as_generator(rng)
    x, d = extract_dyads(X, D, directed)

    fit = fit_negative_binomial(x, d)
    parameters = sample_parameters(fit, num_samples, rng=rng)
    a_, b_ = parameters[:, 0], parameters[:, 1]

    S = 1.0 / np.sqrt(a_)
    mu = a_ / b_
    I = mu * harmonic_mean(d)
    rho = network_correlation(S, I)

    stats = compute_summary({"mu": mu, "S": S, "rho": rho}, ci=ci)

    # -------------------------------------------------------------------------
    # Observed statistics: point values straight from the data.
    # -------------------------------------------------------------------------
    observed_rate = np.mean(x / d)
    rows = (
        SummaryRow(ROW_NAMES[0], float(np.std(x, ddof=1) / np.mean(x)) if x.size > 1 else float("nan")),
        SummaryRow(ROW_NAMES[1], float(observed_rate)),
        SummaryRow(ROW_NAMES[2], float(observed_rate * harmonic_mean(d))),
    ) + tuple(
        SummaryRow(name, s["median"], s["se"], s["lower"], s["upper"])
        for name, s in zip(ROW_NAMES[3:], (stats["mu"], stats["S"], stats["rho"]))
    )

    qq = None
    if diagnostic:
        qq = qq_quantiles(x, d, float(np.median(a_)), float(np.median(b_)), rng=rng)

    return CorrelationSummary(
        rows=tuple(row.rounded(3) for row in rows),
        ci=ci,
        fit=fit,
        diagnostic=qq,
    )

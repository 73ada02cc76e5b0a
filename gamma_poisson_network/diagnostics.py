"""QQ diagnostic for the Gamma-Poisson fit.

If most points lie close to the diagonal the raw data fit the Gamma-Poisson
model well. Tails curving away from the line are common and, provided the
departure is limited to the tails, unlikely to affect the estimates much.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .rng import as_generator


@dataclass(frozen=True)
class QQDiagnostic:
    """Theoretical and observed count quantiles at ``probs``."""
    probs: np.ndarray
    theoretical: np.ndarray
    observed: np.ndarray


def qq_quantiles(x, d, shape: float, rate: float, replicates: int = 1000,
                 rng=None) -> QQDiagnostic:
    """
    Compare observed dyad counts with counts simulated from the fitted model.

    Each dyad is replicated ``replicates`` times with a negative-binomial draw
    of size ``shape`` and probability rate / (rate + d), and percentiles
    0, 1, ..., 100 of the simulated and observed counts are returned.
    """
    rng = as_generator(rng)
    x = np.asarray(x, dtype=np.float64)
    d = np.tile(np.asarray(d, dtype=np.float64), replicates)
    simulated = rng.negative_binomial(shape, rate / (rate + d))

    probs = np.linspace(0.0, 1.0, 101)
    return QQDiagnostic(
        probs=probs,
        theoretical=np.quantile(simulated, probs),
        observed=np.quantile(x, probs),
    )


def plot_qq(diagnostic: QQDiagnostic, ax=None, filename: str | None = None):
    """
    Render a QQ diagnostic with a reference y = x line.

    Args:
        diagnostic: Output of ``qq_quantiles``.
        ax: Optional matplotlib Axes to draw into.
        filename: If given, the figure is saved there and closed.

    Returns:
        The matplotlib Axes.
    """
    import matplotlib.pyplot as plt

    if ax is None:
        _, ax = plt.subplots(figsize=(6, 6))

    ax.scatter(diagnostic.theoretical, diagnostic.observed, s=12)
    ax.axline((0, 0), slope=1, color="black", linewidth=1)
    ax.set_xlim(0, max(float(diagnostic.observed.max()), 1.0))
    ax.set_title("Gamma-Poisson QQ Plot")
    ax.set_xlabel("Theoretical Quantiles")
    ax.set_ylabel("Observed Quantiles")

    if filename is not None:
        ax.figure.savefig(filename, dpi=300, bbox_inches="tight")
        plt.close(ax.figure)
    return ax

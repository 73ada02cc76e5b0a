"""Diminishing-returns point of the sampling effort / correlation curve."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .model import network_correlation, require_positive


@dataclass(frozen=True)
class ElbowPoint:
    sampling_effort: float
    correlation: float


def sampling_effort_for_correlation(social_differentiation: float, correlation: float) -> float:
    """
    Sampling effort needed to reach a network correlation.

    Inverts ρ = S·√I / √(1 + S²·I), giving I = ρ² / (S²·(1 - ρ²)).
    """
    S = require_positive(social_differentiation, "social_differentiation")
    rho = float(correlation)
    if not 0.0 < rho < 1.0:
        raise ValueError(f"correlation must be in (0, 1), got {rho}")
    return rho**2 / (S**2 * (1.0 - rho**2))


def elbow_point(social_differentiation: float, max_cor: float = 0.9,
                num_points: int = 1000) -> ElbowPoint:
    """
    Find the sampling effort beyond which extra effort yields diminishing gains.

    The curve I -> ρ(I) is evaluated from I = 0 up to the effort reaching
    ``max_cor``, rotated so that the chord joining its end points is
    horizontal, and the point highest above that chord is returned.

    Args:
        social_differentiation: Estimated S, e.g. from ``estimate_correlation``.
        max_cor: Correlation at the far end of the curve, in (0, 1).
        num_points: Grid resolution.
    """
    if int(num_points) < 3:
        raise ValueError(f"num_points must be at least 3, got {num_points}")
    I_max = sampling_effort_for_correlation(social_differentiation, max_cor)
    I = np.linspace(0.0, I_max, int(num_points))
    rho = network_correlation(social_differentiation, I)

    theta = np.arctan2(rho[-1] - rho[0], I[-1] - I[0])
    rotated = -np.sin(theta) * (I - I[0]) + np.cos(theta) * (rho - rho[0])
    idx = int(np.argmax(rotated))
    return ElbowPoint(sampling_effort=float(I[idx]), correlation=float(rho[idx]))

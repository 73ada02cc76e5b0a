"""
The Gamma-Poisson model of interaction networks.

True interaction rates λ_ij vary across dyads following a Gamma distribution,
and the observed count for a dyad sampled for time d_ij is Poisson:

    λ_ij ~ Gamma(a, b)            (shape a, rate b)
    X_ij | λ_ij ~ Poisson(λ_ij · d_ij)

Integrating out λ_ij gives a negative-binomial marginal for X_ij with size r = a
and success probability p_ij = b / (b + d_ij), which is the likelihood the
estimator maximises.

Greek Parameters:
    S: Social differentiation, the coefficient of variation of true rates.
       a = 1 / S².
    μ (mu): Mean interaction rate, μ = a / b.
    I: Sampling effort, μ times the harmonic mean of sampling times; the
       expected number of interactions observed per dyad.
    ρ (rho): Correlation between observed and true rates,
             ρ = S·√I / √(1 + S²·I).
"""

from __future__ import annotations

import numpy as np
from scipy import special, stats


# =============================================================================
# PARAMETER TRANSFORMS
# =============================================================================

def require_positive(value: float, name: str) -> float:
    """Return ``value`` as a float, raising ValueError unless it is finite and > 0."""
    value = float(value)
    if not np.isfinite(value) or value <= 0:
        raise ValueError(f"{name} must be a positive number, got {value}")
    return value


def gamma_parameters(social_differentiation: float, mean_rate: float) -> tuple[float, float]:
    """
    Convert social differentiation and mean interaction rate to Gamma parameters.

    Args:
        social_differentiation: S > 0.
        mean_rate: μ > 0.

    Returns:
        (a, b): Gamma shape a = 1/S² and rate b = a/μ.
    """
    S = require_positive(social_differentiation, "social_differentiation")
    mu = require_positive(mean_rate, "mean_rate")
    a = 1.0 / S**2
    return a, a / mu


def harmonic_mean(values) -> float:
    """Harmonic mean of a vector of positive values."""
    values = np.asarray(values, dtype=np.float64)
    return values.size / np.sum(1.0 / values)


def network_correlation(social_differentiation, sampling_effort):
    """
    Correlation between observed and true interaction rates.

    ρ = S·√I / √(1 + S²·I). Works elementwise on arrays.
    """
    S = np.asarray(social_differentiation, dtype=np.float64)
    I = np.asarray(sampling_effort, dtype=np.float64)
    return S * np.sqrt(I) / np.sqrt(1.0 + S**2 * I)


# =============================================================================
# NEGATIVE BINOMIAL MARGINAL LIKELIHOOD
# =============================================================================

class NegativeBinomialLikelihood:
    """
    Marginal likelihood of observed dyad counts under the Gamma-Poisson model.

    Parameters live on the log scale, θ = (log a, log b), so that an
    unconstrained optimiser keeps both positive. The gradient and Hessian
    are exact.

    Attributes:
        x: Observed counts per dyad.
        d: Sampling times per dyad.
    """

    def __init__(self, x, d):
        """
        Args:
            x: Observed counts per dyad, shape (n_dyads,).
            d: Positive sampling times per dyad, shape (n_dyads,).
        """
        self.x = np.asarray(x, dtype=np.float64)
        self.d = np.asarray(d, dtype=np.float64)
        if self.x.shape != self.d.shape or self.x.ndim != 1:
            raise ValueError("x and d must be 1D and of equal length")

    @property
    def n_dyads(self) -> int:
        return int(self.x.shape[0])

    def log_prob(self, log_params) -> np.ndarray:
        """Per-dyad log NB(x | r = a, p = b / (b + d))."""
        a, b = np.exp(log_params)
        return stats.nbinom.logpmf(self.x, a, b / (b + self.d))

    def log_likelihood(self, log_params) -> float:
        """Summed log-likelihood at θ = (log a, log b)."""
        return float(np.sum(self.log_prob(log_params)))

    def negative_log_likelihood(self, log_params) -> float:
        """Objective minimised by the estimator. Non-finite values become +inf."""
        with np.errstate(over="ignore", divide="ignore", invalid="ignore"):
            value = -self.log_likelihood(log_params)
        return value if np.isfinite(value) else np.inf

    def _partials(self, log_params):
        # First and second partials of the summed log-likelihood in (a, b).
        a, b = np.exp(log_params)
        x, d = self.x, self.d
        la = np.sum(special.digamma(x + a) - special.digamma(a) - np.log1p(d / b))
        lb = np.sum(a / b - (a + x) / (b + d))
        laa = np.sum(special.polygamma(1, x + a) - special.polygamma(1, a))
        lab = np.sum(1.0 / b - 1.0 / (b + d))
        lbb = np.sum(-a / b**2 + (a + x) / (b + d) ** 2)
        return a, b, la, lb, laa, lab, lbb

    def gradient(self, log_params) -> np.ndarray:
        """Gradient of the negative log-likelihood with respect to θ."""
        a, b, la, lb, *_ = self._partials(log_params)
        return -np.array([a * la, b * lb])

    def hessian(self, log_params) -> np.ndarray:
        """Hessian of the negative log-likelihood with respect to θ."""
        a, b, la, lb, laa, lab, lbb = self._partials(log_params)
        return -np.array([
            [a**2 * laa + a * la, a * b * lab],
            [a * b * lab, b**2 * lbb + b * lb],
        ])

"""
Inference utilities for the Gamma-Poisson model.

Maximum-likelihood fitting of the negative-binomial marginal over
θ = (log a, log b), followed by a Laplace (quadratic) approximation: the inverse
Hessian of the negative log-likelihood at the optimum is used as the
covariance of a Gaussian over θ, from which parameter draws are taken to
propagate uncertainty into derived quantities.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from scipy.optimize import minimize

from . import UncertaintyPropagationError
from .model import NegativeBinomialLikelihood
from .rng import as_generator


@dataclass(frozen=True)
class FitResult:
    """
    Maximum-likelihood fit of the negative-binomial marginal.

    Attributes:
        log_params: Optimum θ = (log a, log b).
        hessian: Hessian of the negative log-likelihood at θ, shape (2, 2).
        covariance: Inverse Hessian, or None when the Hessian is not
                    positive definite.
        negative_log_likelihood: Objective value at θ.
        n_iter: Optimiser iterations used.
        n_dyads: Number of observations fitted.
        converged: Whether the optimiser reached a finite stationary point.
        message: Optimiser termination message.
    """
    log_params: np.ndarray
    hessian: np.ndarray
    covariance: np.ndarray | None
    negative_log_likelihood: float
    n_iter: int
    n_dyads: int
    converged: bool
    message: str = ""

    @property
    def shape(self) -> float:
        """Gamma shape a at the optimum."""
        return float(np.exp(self.log_params[0]))

    @property
    def rate(self) -> float:
        """Gamma rate b at the optimum."""
        return float(np.exp(self.log_params[1]))

    @property
    def positive_definite(self) -> bool:
        return self.covariance is not None

    def validate(self) -> None:
        """Raise UncertaintyPropagationError unless the Laplace approximation is usable."""
        if not self.converged:
            raise UncertaintyPropagationError(
                f"Optimisation did not converge to a finite optimum after {self.n_iter} "
                f"iterations (log a = {self.log_params[0]:.3g}, log b = {self.log_params[1]:.3g}); "
                "the data may be too sparse to identify the Gamma parameters",
                fit=self,
            )
        if not self.positive_definite:
            raise UncertaintyPropagationError(
                "Hessian of the negative log-likelihood is not positive definite at the "
                "optimum; confidence intervals cannot be computed from it",
                fit=self,
            )


# =============================================================================
# MAXIMUM LIKELIHOOD
# =============================================================================
# Quasi-Newton optimisation (BFGS with the exact gradient) starting at
# θ = (0, 0). The Hessian at the optimum is exact rather than the BFGS
# approximation.
# =============================================================================

def fit_negative_binomial(
    x,
    d,
    max_iter: int = 1000,
    gtol: float = 1e-8,
    max_log_param: float = 30.0,
    max_condition: float = 1e-12,
) -> FitResult:
    """
    Fit the negative-binomial marginal likelihood to dyad observations.

    Args:
        x: Observed counts per dyad.
        d: Positive sampling times per dyad.
        max_iter: Maximum BFGS iterations.
        gtol: Gradient tolerance for termination.
        max_log_param: Optima with |log a| or |log b| above this are treated
                       as divergent (the likelihood is flat in that direction).
        max_condition: Smallest allowed ratio of the Hessian's smallest to
                       largest eigenvalue.

    Returns:
        FitResult. Call ``validate()`` before using its covariance.
    """
    likelihood = NegativeBinomialLikelihood(x, d)
    if likelihood.n_dyads == 0:
        raise ValueError("At least one dyad is required to fit the model")

    with np.errstate(over="ignore", divide="ignore", invalid="ignore"):
        result = minimize(
            likelihood.negative_log_likelihood,
            np.zeros(2),
            jac=likelihood.gradient,
            method="BFGS",
            options={"maxiter": max_iter, "gtol": gtol},
        )
        optimum = np.asarray(result.x, dtype=np.float64)
        objective = likelihood.negative_log_likelihood(optimum)
        grad = likelihood.gradient(optimum)
        hessian = likelihood.hessian(optimum)

    # -------------------------------------------------------------------------
    # Convergence check at the returned point:
    # -------------------------------------------------------------------------
    # BFGS often reports precision loss at a genuine optimum, so the
    # stationarity of the returned point is checked directly.
    # -------------------------------------------------------------------------
    converged = bool(
        np.isfinite(objective)
        and np.all(np.isfinite(grad))
        and np.all(np.abs(optimum) < max_log_param)
        and np.max(np.abs(grad)) <= 1e-4 * max(1.0, abs(objective))
    )

    # Numerically singular Hessians count as not positive definite.
    covariance = None
    if np.all(np.isfinite(hessian)):
        eigenvalues = np.linalg.eigvalsh(hessian)
        if eigenvalues.min() > max_condition * eigenvalues.max() > 0:
            covariance = np.linalg.inv(hessian)
            covariance = 0.5 * (covariance + covariance.T)

    return FitResult(
        log_params=optimum,
        hessian=hessian,
        covariance=covariance,
        negative_log_likelihood=float(objective),
        n_iter=int(result.nit),
        n_dyads=likelihood.n_dyads,
        converged=converged,
        message=str(result.message),
    )


# =============================================================================
# LAPLACE APPROXIMATION SAMPLING
# =============================================================================

def sample_parameters(fit: FitResult, num_samples: int = 100_000, rng=None) -> np.ndarray:
    """
    Draw Gamma parameters from the Gaussian approximation around the optimum.

    θ ~ MultivariateNormal(θ̂, H⁻¹) on the log scale, exponentiated.

    This is a local approximation to the sampling distribution of the MLE,
    valid near the optimum only.

    Args:
        fit: A FitResult. Must pass ``fit.validate()``.
        num_samples: Number of draws.
        rng: Seed or numpy Generator.

    Returns:
        Array of shape (num_samples, 2) with columns (a, b).
    """
    fit.validate()
    if int(num_samples) < 2:
        raise ValueError(f"num_samples must be at least 2, got {num_samples}")
    rng = as_generator(rng)

    draws = rng.multivariate_normal(fit.log_params, fit.covariance, size=int(num_samples), method="cholesky")

    with np.errstate(over="ignore"):
        parameters = np.exp(draws)
    if not np.all(np.isfinite(parameters)) or np.any(parameters <= 0):
        raise UncertaintyPropagationError(
            "Parameter draws overflowed; the covariance around the optimum is too wide "
            "for the quadratic approximation to be meaningful",
            fit=fit,
        )
    return parameters


# =============================================================================
# SUMMARY STATISTICS
# =============================================================================

def compute_summary(draws: dict[str, np.ndarray], ci: float = 0.95) -> dict[str, Any]:
    """
    Compute summary statistics for sampled quantities.

    Args:
        draws: Mapping of quantity name to a 1D array of draws.
        ci: Width of the two-sided interval.

    Returns:
        Mapping of quantity name to a dict with 'median', 'se' (sample standard
        deviation), 'lower' and 'upper' (empirical quantiles at (1-ci)/2 and
        (1+ci)/2).
    """
    lower_q = 0.5 * (1.0 - ci)
    upper_q = lower_q + ci

    summary = {}
    for name, values in draws.items():
        values = np.asarray(values, dtype=np.float64)
        lower, median, upper = np.quantile(values, [lower_q, 0.5, upper_q])
        summary[name] = {
            "median": float(median),
            "se": float(np.std(values, ddof=1)),
            "lower": float(lower),
            "upper": float(upper),
        }
    return summary

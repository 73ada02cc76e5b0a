"""
Gamma-Poisson network reliability and power analysis.

Observed interaction counts between pairs of individuals are modelled as
Poisson draws whose rates vary across dyads following a Gamma distribution.
This package:
- simulates interaction networks from that model,
- fits the negative-binomial marginal of the model to observed counts and
  sampling times, propagating uncertainty by a Laplace approximation, to
  estimate social differentiation and the correlation between the observed
  and true networks,
- estimates the power of nodal regressions on networks built from sparse data.
"""


class DegenerateIterationWarning(UserWarning):
    """Warning issued when power-analysis iterations are skipped."""


class UncertaintyPropagationError(RuntimeError):
    """
    Raised when the Laplace approximation around the fitted optimum is unusable.

    This happens when the optimiser fails to converge to a finite optimum, or
    when the Hessian of the negative log-likelihood at the optimum is not
    positive definite. Both usually mean the data carry too little
    information to identify the shape and rate of the Gamma distribution.

    Attributes:
        fit: The FitResult that failed, for inspection.
    """

    def __init__(self, message: str, fit=None):
        super().__init__(message)
        self.fit = fit


from .data import load_matrix, extract_dyads
from .model import gamma_parameters, network_correlation, harmonic_mean
from .simulation import SimulatedData, simulate_data
from .inference import FitResult, fit_negative_binomial, sample_parameters
from .correlation import CorrelationSummary, SummaryRow, estimate_correlation
from .metrics import NodeMetric, build_graph, compute_metric
from .power import PowerResult, power_nodereg
from .diagnostics import QQDiagnostic, qq_quantiles, plot_qq
from .elbow import ElbowPoint, elbow_point, sampling_effort_for_correlation

__all__ = [
    "simulate_data",
    "SimulatedData",
    "estimate_correlation",
    "CorrelationSummary",
    "SummaryRow",
    "power_nodereg",
    "PowerResult",
    "NodeMetric",
    "build_graph",
    "compute_metric",
    "fit_negative_binomial",
    "sample_parameters",
    "FitResult",
    "gamma_parameters",
    "network_correlation",
    "harmonic_mean",
    "load_matrix",
    "extract_dyads",
    "QQDiagnostic",
    "qq_quantiles",
    "plot_qq",
    "ElbowPoint",
    "elbow_point",
    "sampling_effort_for_correlation",
    "DegenerateIterationWarning",
    "UncertaintyPropagationError",
]
__version__ = "0.1.0"

"""
Power analysis for nodal regressions on sampled interaction networks.

Each iteration simulates a true network from the Gamma-Poisson model, generates
a node trait linearly related to a network metric at a target correlation,
observes the network through Poisson sampling, and regresses the trait on the
metric of the observed network. Power is the fraction of iterations where the
slope is significant.
"""

from __future__ import annotations

import contextlib
import warnings
from dataclasses import dataclass

import numpy as np
import dask
from dask.diagnostics import ProgressBar
from scipy import stats

from . import DegenerateIterationWarning
from .data import check_square
from .metrics import MetricLike, build_graph, compute_metric, resolve_metric
from .model import require_positive
from .rng import as_generator, spawn_generators
from .simulation import draw_counts, draw_rates, draw_sampling_times, require_node_count


@dataclass(frozen=True)
class PowerResult:
    """
    Estimated power of a nodal regression.

    Attributes:
        nodes: Number of nodes.
        effect: Target correlation between trait and metric under perfect sampling.
        social_differentiation: S used for the true networks.
        interaction_rate: Mean interaction rate μ used for the true networks.
        power: Fraction of valid iterations with a significant slope.
        num_iters: Iterations run.
        num_valid: Iterations that produced a defined p-value.
    """
    nodes: int
    effect: float
    social_differentiation: float
    interaction_rate: float
    power: float
    num_iters: int
    num_valid: int

    @property
    def standard_error(self) -> float:
        """Binomial Monte Carlo standard error of ``power``."""
        if self.num_valid == 0:
            return float("nan")
        return float(np.sqrt(self.power * (1.0 - self.power) / self.num_valid))


# =============================================================================
# INPUT RESOLUTION
# =============================================================================

def resolve_sampling_times(sampling_times, nodes: int, directed: bool = False,
                           rng=None) -> np.ndarray:
    """
    Resolve sampling times to an n x n matrix.

    A scalar is a mean sampling time: a matrix is drawn with the same
    Poisson, floor-to-one and symmetry rules as ``simulate_data``. A matrix is
    validated and returned as float64.
    """
    if np.ndim(sampling_times) == 0:
        mean_sampling = require_positive(sampling_times, "sampling_times")
        return draw_sampling_times(nodes, mean_sampling, as_generator(rng), directed)

    D = check_square(sampling_times, "sampling_times")
    if D.shape != (nodes, nodes):
        raise ValueError(f"sampling_times must have shape ({nodes}, {nodes}), got {D.shape}")
    if np.any(D < 0):
        raise ValueError("sampling_times must be non-negative")
    if not directed and not np.allclose(D, D.T):
        raise ValueError("sampling_times must be symmetric when directed=False")
    return D


def _require_unit_interval(value: float, name: str) -> float:
    value = float(value)
    if not 0.0 < value < 1.0:
        raise ValueError(f"{name} must be in (0, 1), got {value}")
    return value


# =============================================================================
# SINGLE ITERATION
# =============================================================================

def _has_spread(values: np.ndarray) -> bool:
    return bool(np.all(np.isfinite(values)) and np.ptp(values) > 0)


def _simulate_p_value(
    rng: np.random.Generator,
    nodes: int,
    a: float,
    b: float,
    D: np.ndarray,
    metric,
    effect: float,
    directed: bool,
) -> float | None:
    """
    Run one simulate / observe / regress iteration.

    Returns:
        The two-sided p-value of the slope, or None when the true or observed
        metric has no variance and the regression is undefined.
    """
    A = draw_rates(nodes, a, b, rng, directed)
    true_metric = compute_metric(build_graph(A, directed), metric)
    if not _has_spread(true_metric):
        return None

    # Slope giving correlation `effect` between trait and metric with unit noise.
    effect_size = effect * np.sqrt(1.0 / (1.0 - effect)) / (np.std(true_metric, ddof=1) * np.sqrt(effect + 1.0))
    trait = 1.0 + effect_size * true_metric + rng.normal(0.0, 1.0, size=nodes)

    counts = draw_counts(A, D, rng, directed)
    with np.errstate(divide="ignore", invalid="ignore"):
        observed = counts / D
    observed[~np.isfinite(observed)] = 0.0

    observed_metric = compute_metric(build_graph(observed, directed), metric)
    if not _has_spread(observed_metric):
        return None

    return float(stats.linregress(observed_metric, trait).pvalue)


def _run_chunk(generators, nodes, a, b, D, metric, effect, directed) -> list[float | None]:
    return [_simulate_p_value(g, nodes, a, b, D, metric, effect, directed) for g in generators]


# =============================================================================
# POWER ESTIMATION
# =============================================================================

def power_nodereg(
    nodes: int,
    effect: float,
    social_differentiation: float,
    interaction_rate: float,
    sampling_times,
    metric: MetricLike = "strength",
    directed: bool = False,
    sig_level: float = 0.05,
    num_iters: int = 1000,
    rng=None,
    scheduler: str = "synchronous",
    chunk_size: int = 100,
    progress: bool = False,
) -> PowerResult:
    """
    Estimate the power of a nodal regression on a sampled interaction network.

    Args:
        nodes: Number of nodes, at least 2.
        effect: Correlation between trait and metric under perfect sampling, in (0, 1).
        social_differentiation: S > 0, e.g. the estimate from ``estimate_correlation``.
        interaction_rate: μ > 0, e.g. the estimate from ``estimate_correlation``.
        sampling_times: Mean sampling time per dyad (scalar) or an n x n matrix.
        metric: NodeMetric, metric name, or callable graph -> vector.
        directed: Whether the network is directed.
        sig_level: Significance level of the slope test.
        num_iters: Monte Carlo iterations. The standard error of the estimate
                   is about sqrt(p(1-p)/num_iters).
        rng: Seed or numpy Generator.
        scheduler: dask scheduler for the iterations ("synchronous",
                   "threads" or "processes"). Results do not depend on it.
        chunk_size: Iterations per dask task.
        progress: Show a dask progress bar.

    Returns:
        PowerResult.

    Note:
        Iterations whose true or observed metric has zero variance have no
        defined p-value. They are excluded from the power fraction and counted
        in ``num_valid``; a DegenerateIterationWarning reports how many were
        skipped. If none is valid the power is 0.0.

        To use confidence bounds of S or μ, call once per value:

        >>> results = [power_nodereg(8, 0.5, S, 0.274, 10) for S in (1.5, 1.78, 2.1)]
    """
    nodes = require_node_count(nodes)
    effect = _require_unit_interval(effect, "effect")
    social_differentiation = require_positive(social_differentiation, "social_differentiation")
    interaction_rate = require_positive(interaction_rate, "interaction_rate")
    sig_level = _require_unit_interval(sig_level, "sig_level")
    if isinstance(num_iters, bool) or int(num_iters) != num_iters or num_iters < 1:
        raise ValueError(f"num_iters must be a positive integer, got {num_iters}")
    num_iters = int(num_iters)
    chunk_size = max(1, int(chunk_size))

    rng = as_generator(rng)
    metric = resolve_metric(metric)
    D = resolve_sampling_times(sampling_times, nodes, directed, rng)

    a = 1.0 / social_differentiation**2
    b = 1.0 / (social_differentiation**2 * interaction_rate)

    # -------------------------------------------------------------------------
    # Chunked Monte Carlo:
    # -------------------------------------------------------------------------
    # One spawned generator per iteration pins each iteration's draws, so the
    # estimate is the same whichever scheduler executes the chunks.
    # -------------------------------------------------------------------------
    generators = spawn_generators(rng, num_iters)
    tasks = [
        dask.delayed(_run_chunk)(generators[i:i + chunk_size], nodes, a, b, D, metric, effect, directed)
        for i in range(0, num_iters, chunk_size)
    ]
    with ProgressBar() if progress else contextlib.nullcontext():
        chunks = dask.compute(*tasks, scheduler=scheduler)

    p_values = np.array([p for chunk in chunks for p in chunk if p is not None], dtype=np.float64)
    num_valid = int(p_values.size)

    if num_valid < num_iters:
        warnings.warn(
            f"{num_iters - num_valid} of {num_iters} iterations had a metric with zero variance "
            "and were excluded from the power estimate",
            DegenerateIterationWarning,
            stacklevel=2,
        )
    power = float(np.mean(p_values < sig_level)) if num_valid else 0.0

    return PowerResult(
        nodes=nodes,
        effect=effect,
        social_differentiation=social_differentiation,
        interaction_rate=interaction_rate,
        power=power,
        num_iters=num_iters,
        num_valid=num_valid,
    )

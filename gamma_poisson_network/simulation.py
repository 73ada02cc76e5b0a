"""
Simulation of interaction networks from the Gamma-Poisson model.

Produces the triple (X, D, A): observed interaction counts, sampling times
and the latent true interaction rates that generated them.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .model import gamma_parameters, require_positive
from .rng import as_generator


@dataclass(frozen=True)
class SimulatedData:
    """
    Simulated observation data.

    Attributes:
        X: Observed interaction counts, int64 (n, n).
        D: Sampling times, float64 (n, n).
        A: True interaction rates, float64 (n, n).
    """
    X: np.ndarray
    D: np.ndarray
    A: np.ndarray


def require_node_count(n) -> int:
    """Validate a node count: an integer of at least 2."""
    if isinstance(n, bool) or int(n) != n or n < 2:
        raise ValueError(f"n must be an integer >= 2, got {n}")
    return int(n)


def symmetrize(M: np.ndarray, directed: bool = False) -> np.ndarray:
    """
    Apply the dyad symmetry policy to an n x n matrix of independent draws.

    Directed networks keep both triangles, one independent draw per ordered
    pair, and only lose the diagonal. Undirected networks keep the upper
    triangle and mirror it onto the lower one.
    """
    if directed:
        out = M.copy()
        np.fill_diagonal(out, 0)
        return out
    upper = np.triu(M, k=1)
    return upper + upper.T


def draw_sampling_times(n: int, mean_sampling: float, rng: np.random.Generator,
                        directed: bool = False) -> np.ndarray:
    """
    Draw an n x n sampling-time matrix.

    Per-dyad times are Poisson(mean_sampling); zero draws are replaced with 1
    since every dyad must be sampled for a non-zero amount of time.
    """
    d = rng.poisson(mean_sampling, size=(n, n)).astype(np.float64)
    d[d == 0] = 1.0
    return symmetrize(d, directed)


def draw_rates(n: int, a: float, b: float, rng: np.random.Generator,
               directed: bool = False) -> np.ndarray:
    """Draw an n x n matrix of true rates from Gamma(shape=a, rate=b)."""
    return symmetrize(rng.gamma(a, 1.0 / b, size=(n, n)), directed)


def draw_counts(rates: np.ndarray, sampling_times: np.ndarray, rng: np.random.Generator,
                directed: bool = False) -> np.ndarray:
    """Draw Poisson(rate · time) interaction counts for every dyad."""
    return symmetrize(rng.poisson(rates * sampling_times), directed)


def simulate_data(
    n: int,
    mean_sampling: float,
    social_differentiation: float,
    mean_rate: float,
    directed: bool = False,
    rng=None,
) -> SimulatedData:
    """
    Simulate an interaction network from the Gamma-Poisson model.

    Args:
        n: Number of nodes, at least 2.
        mean_sampling: Mean time spent sampling each dyad.
        social_differentiation: Desired social differentiation S of the network.
        mean_rate: Mean interaction rate μ per unit sampling time.
        directed: Whether the network is directed.
        rng: Seed or numpy Generator.

    Returns:
        SimulatedData with X, D and A, each of shape (n, n) with a zero diagonal.

    Example:
        >>> data = simulate_data(20, 10, 0.25, 0.5, rng=42)
        >>> data.X.shape
        (20, 20)
    """
    n = require_node_count(n)
    mean_sampling = require_positive(mean_sampling, "mean_sampling")
    a, b = gamma_parameters(social_differentiation, mean_rate)
    rng = as_generator(rng)

    # Draw every cell independently, then impose symmetry on the finished
    # matrices so that X, D and A stay consistent dyad by dyad.
    d = rng.poisson(mean_sampling, size=(n, n)).astype(np.float64)
    d[d == 0] = 1.0
    alpha = rng.gamma(a, 1.0 / b, size=(n, n))
    x = rng.poisson(alpha * d)

    return SimulatedData(
        X=symmetrize(x, directed).astype(np.int64),
        D=symmetrize(d, directed),
        A=symmetrize(alpha, directed),
    )

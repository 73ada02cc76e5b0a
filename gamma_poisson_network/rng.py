"""Random generator handles.

Every stochastic routine in the package takes an explicit ``rng`` argument
instead of touching global state, so that Monte Carlo iterations can each own
an independent, seeded sub-generator.
"""

from __future__ import annotations

import numpy as np


def as_generator(rng: int | np.random.Generator | None = None) -> np.random.Generator:
    """
    Coerce a seed or generator into a numpy Generator.

    Args:
        rng: An existing Generator (returned unchanged), an integer seed, or
             None for fresh OS entropy.

    Returns:
        np.random.Generator
    """
    if isinstance(rng, np.random.Generator):
        return rng
    return np.random.default_rng(rng)


def spawn_generators(rng: np.random.Generator, n: int) -> list[np.random.Generator]:
    """Spawn ``n`` statistically independent child generators from ``rng``."""
    return rng.spawn(n)


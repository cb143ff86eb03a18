"""
Prior test samples from a Gaussian restricted to the open interval (-π, π).
"""

import warnings

import numpy as np

from .config import MAX_REJECTION_ROUNDS

# Largest float strictly inside the phase interval
PHASE_BOUND = float(np.nextafter(np.pi, 0.0))


def sample_restricted_gaussian(
    mu: float,
    sigma: float,
    n_samples: int,
    rng: np.random.Generator,
    max_rounds: int = MAX_REJECTION_ROUNDS,
) -> np.ndarray:
    """
    Draw n_samples from N(mu, sigma²) restricted to (-π, π).

    Draws with |x| ≥ π are rejected and redrawn in batches. After max_rounds
    batches any still-missing samples are taken from the last rejected draws,
    clamped to just inside the interval, and a RuntimeWarning is issued.

    Args:
        mu: Mean of the untruncated Gaussian
        sigma: Standard deviation (≥ 0)
        n_samples: Number of samples m
        rng: Random generator
        max_rounds: Maximum number of redraw batches

    Returns:
        Array of exactly n_samples phases, each strictly inside (-π, π)
    """
    if sigma < 0:
        raise ValueError(f"sigma must be non-negative, got {sigma}")
    if n_samples < 0:
        raise ValueError(f"n_samples must be non-negative, got {n_samples}")
    if max_rounds < 1:
        raise ValueError(f"max_rounds must be at least 1, got {max_rounds}")

    samples = np.empty(n_samples, dtype=float)
    filled = 0
    rejected = np.empty(0, dtype=float)

    for _ in range(max_rounds):
        if filled == n_samples:
            break
        draws = rng.normal(mu, sigma, size=n_samples - filled)
        inside = np.abs(draws) < np.pi
        accepted = draws[inside]
        samples[filled:filled + accepted.size] = accepted
        filled += accepted.size
        rejected = draws[~inside]

    if filled < n_samples:
        warnings.warn(
            f"Restricted Gaussian sampler (mu={mu:.4g}, sigma={sigma:.4g}) "
            f"exhausted {max_rounds} rounds; clamping {n_samples - filled} "
            f"samples to the interval boundary.",
            RuntimeWarning,
        )
        samples[filled:] = np.clip(rejected, -PHASE_BOUND, PHASE_BOUND)

    return samples

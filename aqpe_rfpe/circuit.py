"""
Classical stand-in for the AQPE quantum circuit.

The circuit is abstracted as a biased coin. For a circuit of depth M with
rotation angle θ, a phase φ produces outcome 0 with probability

    P(0 | φ; M, θ) = (1 + cos(M(φ - θ))) / 2

which is the Born-rule probability of the single-ancilla phase estimation
circuit. The same closed form serves as the likelihood model inside the
rejection filter.

Circuit parameters are derived from the current belief N(μ, σ²):
    M = σ^(-α)      (M = 1 when σ = 0)
    θ = μ - σ
"""

from dataclasses import dataclass
from typing import Union

import numpy as np

from .config import EVIDENCE_BLOCK_SIZE


@dataclass(frozen=True)
class CircuitParameters:
    """Depth multiplier M and rotation angle θ of one circuit mapping."""
    M: float
    theta: float


@dataclass(frozen=True)
class Evidence:
    """Outcome counts (n0, n1) of one batch of circuit samples."""
    n0: int
    n1: int

    @property
    def total(self) -> int:
        return self.n0 + self.n1


def calculate_M(std: float, alpha: float) -> float:
    """Circuit depth multiplier M = σ^(-α), or 1 for a collapsed belief."""
    if std == 0.0:
        return 1.0
    return 1.0 / std ** alpha


def calculate_theta(mean: float, std: float) -> float:
    """Circuit rotation angle θ = μ - σ."""
    return mean - std


def derive_circuit_parameters(mean: float, std: float, alpha: float) -> CircuitParameters:
    """
    Derive (M, θ) for the next circuit mapping from the current belief.

    Args:
        mean: Belief mean μ
        std: Belief standard deviation σ (≥ 0)
        alpha: Depth exponent α in [0, 1]

    Returns:
        CircuitParameters for this iteration
    """
    return CircuitParameters(M=calculate_M(std, alpha), theta=calculate_theta(mean, std))


def outcome_zero_probability(
    phi: Union[float, np.ndarray],
    params: CircuitParameters,
) -> Union[float, np.ndarray]:
    """
    Probability of measuring 0 for phase(s) φ.

    Accepts a scalar or an array of candidate phases.
    """
    return (1.0 + np.cos(params.M * (phi - params.theta))) / 2.0


def run_qpe_circuit(
    phi: float,
    params: CircuitParameters,
    n_samples: int,
    rng: np.random.Generator,
) -> Evidence:
    """
    Sample the circuit n_samples times at the true phase φ.

    Each sample draws u ~ U(0, 1) and yields outcome 0 iff u < P(0 | φ).

    Args:
        phi: True (target) phase
        params: Circuit parameters for this iteration
        n_samples: Number of circuit samples N (0 is allowed)
        rng: Random generator

    Returns:
        Evidence with n0 + n1 == n_samples
    """
    if n_samples < 0:
        raise ValueError(f"n_samples must be non-negative, got {n_samples}")

    p0 = float(outcome_zero_probability(phi, params))

    n0 = 0
    remaining = int(n_samples)
    while remaining > 0:
        block = min(remaining, EVIDENCE_BLOCK_SIZE)
        n0 += int(np.count_nonzero(rng.random(block) < p0))
        remaining -= block

    return Evidence(n0=n0, n1=int(n_samples) - n0)

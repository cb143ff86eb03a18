"""
Configuration and default parameters for AQPE experiments.
"""

from dataclasses import dataclass, field

import numpy as np

# Default experiment parameters
DEFAULT_TARGET_PHI = np.pi / 2
DEFAULT_PRECISION = 1e-2
DEFAULT_ALPHA = 1.0
DEFAULT_EVIDENCE_SAMPLES = 0   # 0 = automatic selection from precision and alpha
DEFAULT_PRIOR_SAMPLES = 1000
DEFAULT_REPETITIONS = 1

# Accepted input ranges
MIN_PHI = -np.pi
MAX_PHI = np.pi
MIN_PRECISION = 1e-10
MAX_PRECISION = 1.0
MIN_ALPHA = 0.0
MAX_ALPHA = 1.0

# Cap on automatically selected evidence samples per iteration
MAX_EVIDENCE_SAMPLES = 1000000

# Initial belief: N(0, (π/2)²) over the phase
INITIAL_MEAN = 0.0
INITIAL_STD = np.pi / 2

# Iteration cap per experiment
MAX_ITERATIONS = 100

# Posterior spread inflation (1.0 = no inflation)
POSTERIOR_STD_INCREASE_FACTOR = 1.0

# A converged estimate further than this many precisions from the target
# counts as a wrong convergence
WRONG_CONVERGENCE_SIGMA = 4.0

# Truncated Gaussian sampler: batch redraw rounds before clamping
MAX_REJECTION_ROUNDS = 1000

# Uniform variates drawn per block by the evidence generator
EVIDENCE_BLOCK_SIZE = 1 << 20


def _default_evidence_samples() -> int:
    """Automatic evidence sample count for the default precision and alpha."""
    from .analysis import required_evidence_samples
    return required_evidence_samples(DEFAULT_PRECISION, DEFAULT_ALPHA)


@dataclass(frozen=True)
class ExperimentConfig:
    """
    Immutable run configuration.

    Attributes:
        target_phi: True phase the circuit encodes, in [-π, π]
        precision: Stop once the belief standard deviation drops below this
        alpha: Depth exponent in [0, 1]; circuit depth M = σ^(-α)
        evidence_samples: Circuit samples N per iteration (already resolved;
            defaults to the automatic count for the default precision and alpha)
        prior_samples: Prior test samples m per iteration
        repetitions: Number of independent experiments
        verbose: Print per-iteration traces
        max_iterations: Iteration cap per experiment
    """
    target_phi: float = DEFAULT_TARGET_PHI
    precision: float = DEFAULT_PRECISION
    alpha: float = DEFAULT_ALPHA
    evidence_samples: int = field(default_factory=_default_evidence_samples)
    prior_samples: int = DEFAULT_PRIOR_SAMPLES
    repetitions: int = DEFAULT_REPETITIONS
    verbose: bool = False
    max_iterations: int = MAX_ITERATIONS

    def to_dict(self) -> dict:
        """Return the configuration as a plain dictionary."""
        return {
            "target_phi": float(self.target_phi),
            "precision": float(self.precision),
            "alpha": float(self.alpha),
            "evidence_samples": int(self.evidence_samples),
            "prior_samples": int(self.prior_samples),
            "repetitions": int(self.repetitions),
            "verbose": bool(self.verbose),
            "max_iterations": int(self.max_iterations),
        }

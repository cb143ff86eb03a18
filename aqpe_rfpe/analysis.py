"""
Resource estimates and result aggregation for AQPE experiments.

Resource model (depth/sample tradeoff controlled by α ∈ [0, 1]):

    Circuit depth:   D = ⌈ε^(-α)⌉
    Circuit samples: N = ⌈4 ln(1/ε)⌉                              (α = 1)
                     N = ⌈(2 / (1 - α)) (ε^(-2(1-α)) - 1)⌉        (α < 1)

where ε is the target precision. α = 1 is the fully coherent limit of
Heisenberg-scaling depth with logarithmically few samples; α = 0 is the
shallow limit with depth-1 circuits and ~1/ε² samples.
"""

import math
import warnings
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np

from .config import MAX_EVIDENCE_SAMPLES, WRONG_CONVERGENCE_SIGMA


# ==============================================================================
# Resource estimates
# ==============================================================================

def required_circuit_depth(precision: float, alpha: float) -> int:
    """Circuit depth ⌈ε^(-α)⌉ needed to reach precision ε."""
    return int(math.ceil(1.0 / precision ** alpha))


def required_evidence_samples(precision: float, alpha: float) -> int:
    """
    Circuit samples per iteration needed to reach precision ε.

    Args:
        precision: Target precision ε in (0, 1]
        alpha: Depth exponent α in [0, 1]

    Returns:
        Number of samples N (uncapped)
    """
    if alpha == 1.0:
        return int(math.ceil(4.0 * math.log(1.0 / precision)))
    return int(math.ceil((2.0 / (1.0 - alpha)) * (1.0 / precision ** (2.0 * (1.0 - alpha)) - 1.0)))


def resolve_evidence_samples(
    requested: int,
    precision: float,
    alpha: float,
    explicit_auto: bool = False,
    limit: int = MAX_EVIDENCE_SAMPLES,
) -> int:
    """
    Resolve the evidence sample count used by every iteration.

    A positive request is used as is. A request of 0 selects the count
    automatically; the automatic count is capped at `limit` unless the
    caller explicitly asked for automatic selection.

    Args:
        requested: Requested N (0 = automatic)
        precision: Target precision ε
        alpha: Depth exponent α
        explicit_auto: True when 0 was requested explicitly
        limit: Cap applied to the automatic count

    Returns:
        Evidence samples per iteration
    """
    if requested < 0:
        raise ValueError(f"requested evidence samples must be non-negative, got {requested}")
    if requested > 0:
        return int(requested)

    n_samples = required_evidence_samples(precision, alpha)

    if not explicit_auto and n_samples > limit:
        warnings.warn(
            f"The number of samples required from the quantum circuit, N = {n_samples}, "
            f"exceeds the allowed maximum of {limit}. Using the maximum allowed. "
            f"Request 0 samples explicitly (-n 0) to permit the full count.",
            RuntimeWarning,
        )
        n_samples = limit

    return n_samples


# ==============================================================================
# Result containers
# ==============================================================================

@dataclass
class IterationRecord:
    """Belief and filter diagnostics after one iteration."""
    iteration: int
    mean: float
    std: float
    M: float
    theta: float
    n0: int
    n1: int
    n_accepted: int
    degenerate: bool = False


@dataclass
class ExperimentResult:
    """Outcome of a single AQPE experiment."""
    experiment_no: int
    converged: bool
    iterations: int
    estimated_phi: float
    final_std: float
    degenerate_steps: int = 0
    trace: List[IterationRecord] = field(default_factory=list)

    def to_dict(self, include_trace: bool = False) -> dict:
        data = {
            "experiment_no": self.experiment_no,
            "converged": self.converged,
            "iterations": self.iterations,
            "estimated_phi": self.estimated_phi,
            "final_std": self.final_std,
            "degenerate_steps": self.degenerate_steps,
        }
        if include_trace:
            data["trace"] = [vars(record) for record in self.trace]
        return data


@dataclass
class RunSummary:
    """Statistics aggregated over repeated experiments."""
    total_repetitions: int
    convergence_count: int
    average_iterations: float
    average_absolute_error: float
    wrong_convergence_count: int
    wrong_convergence_threshold: float
    seed: Optional[int] = None

    @property
    def all_failed(self) -> bool:
        return self.convergence_count == 0

    def to_dict(self) -> dict:
        return {
            "total_repetitions": self.total_repetitions,
            "convergence_count": self.convergence_count,
            "average_iterations": self.average_iterations,
            "average_absolute_error": self.average_absolute_error,
            "wrong_convergence_count": self.wrong_convergence_count,
            "wrong_convergence_threshold": self.wrong_convergence_threshold,
            "seed": self.seed,
        }


def aggregate_results(
    results: Sequence[ExperimentResult],
    target_phi: float,
    precision: float,
    sigma_multiple: float = WRONG_CONVERGENCE_SIGMA,
    seed: Optional[int] = None,
) -> RunSummary:
    """
    Aggregate per-experiment results.

    Averages run over converged experiments only and are NaN when none
    converged. A converged experiment whose error exceeds
    sigma_multiple × precision counts as a wrong convergence.
    """
    converged = [r for r in results if r.converged]
    threshold = sigma_multiple * precision

    if converged:
        errors = np.abs(np.array([r.estimated_phi for r in converged]) - target_phi)
        average_iterations = float(np.mean([r.iterations for r in converged]))
        average_error = float(np.mean(errors))
        wrong = int(np.count_nonzero(errors > threshold))
    else:
        average_iterations = float("nan")
        average_error = float("nan")
        wrong = 0

    return RunSummary(
        total_repetitions=len(results),
        convergence_count=len(converged),
        average_iterations=average_iterations,
        average_absolute_error=average_error,
        wrong_convergence_count=wrong,
        wrong_convergence_threshold=threshold,
        seed=seed,
    )

"""
Accelerated Quantum Phase Estimation via Rejection Filtering
=============================================================

Classical simulation of the Bayesian-update loop that a hybrid
quantum/classical phase estimation algorithm (AQPE) runs against a
quantum processor. The unknown phase φ is tracked by a Gaussian belief
N(μ, σ²) that is refined each iteration by Rejection Filtering Phase
Estimation (RFPE).

Per iteration:
    1. Circuit parameters   M = σ^(-α),  θ = μ - σ
    2. Evidence             N samples with P(0) = (1 + cos(M(φ - θ))) / 2
    3. Prior test samples   m draws from N(μ, σ²) restricted to (-π, π)
    4. Rejection filter     accept samples by likelihood, moment-match
    5. Stop once σ < precision (or after the iteration cap)

The exponent α ∈ [0, 1] trades circuit depth (⌈ε^(-α)⌉) against the
number of circuit samples per iteration.

Package Structure:
==================
- config.py       Defaults, limits, ExperimentConfig
- circuit.py      Circuit parameters and the biased-coin evidence generator
- priors.py       Truncated Gaussian prior sampler
- rfpe.py         Rejection filter (Belief, FilterResult)
- analysis.py     Resource estimates, result containers, aggregation
- experiment.py   Single-experiment loop and AQPEExperiment runner
- validation.py   Self-validation checks
- cli.py          Command-line interface (aqpe-rfpe)

Quick Start:
    import numpy as np
    from aqpe_rfpe import AQPEExperiment, ExperimentConfig

    config = ExperimentConfig(target_phi=np.pi / 2, precision=1e-2, alpha=1.0,
                              evidence_samples=19, repetitions=20)
    exp = AQPEExperiment(config, seed=1234)
    summary = exp.run()
    exp.print_summary()
"""

__version__ = "1.0.0"

from .config import ExperimentConfig
from .circuit import (
    CircuitParameters,
    Evidence,
    derive_circuit_parameters,
    outcome_zero_probability,
    run_qpe_circuit,
)
from .priors import sample_restricted_gaussian
from .rfpe import (
    Belief,
    FilterResult,
    DegenerateFilterError,
    log_likelihoods,
    rejection_filter,
)
from .analysis import (
    ExperimentResult,
    IterationRecord,
    RunSummary,
    aggregate_results,
    required_circuit_depth,
    required_evidence_samples,
    resolve_evidence_samples,
)
from .experiment import AQPEExperiment, run_single_experiment
from .validation import run_validation

__all__ = [
    # Configuration
    "ExperimentConfig",

    # Evidence generator
    "CircuitParameters",
    "Evidence",
    "derive_circuit_parameters",
    "outcome_zero_probability",
    "run_qpe_circuit",

    # Prior sampler
    "sample_restricted_gaussian",

    # Rejection filter
    "Belief",
    "FilterResult",
    "DegenerateFilterError",
    "log_likelihoods",
    "rejection_filter",

    # Resource estimates and aggregation
    "ExperimentResult",
    "IterationRecord",
    "RunSummary",
    "aggregate_results",
    "required_circuit_depth",
    "required_evidence_samples",
    "resolve_evidence_samples",

    # Driver
    "AQPEExperiment",
    "run_single_experiment",
    "run_validation",
]

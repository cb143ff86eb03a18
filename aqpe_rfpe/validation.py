"""
Self-validation of the AQPE/RFPE building blocks.

Checks, with fixed seeds:
- Restricted Gaussian sampler: exact length, samples strictly inside (-π, π)
- Evidence generator: counts sum to N, frequency approaches P(0 | φ)
- Rejection filter: non-negative spread, exact halving on single acceptance
- Resource estimates: documented sample counts and the sample cap
- Driver: reproducibility under a fixed seed, convergence near the target
"""

import warnings
from typing import Dict

import numpy as np

from .analysis import required_evidence_samples, resolve_evidence_samples
from .circuit import CircuitParameters, Evidence, outcome_zero_probability, run_qpe_circuit
from .config import ExperimentConfig, MAX_EVIDENCE_SAMPLES, WRONG_CONVERGENCE_SIGMA
from .experiment import AQPEExperiment
from .priors import sample_restricted_gaussian
from .rfpe import rejection_filter


class ValidationResults:
    """Container for validation test results."""

    def __init__(self):
        self.passed = 0
        self.failed = 0
        self.results = []

    def record(self, name: str, condition: bool, details: str = "") -> bool:
        """Record a test result."""
        status = "✓ PASS" if condition else "✗ FAIL"
        self.results.append({
            "name": name,
            "passed": condition,
            "status": status,
            "details": details,
        })
        if condition:
            self.passed += 1
        else:
            self.failed += 1
        return condition

    def summary(self) -> str:
        """Return summary string."""
        return f"{self.passed} passed, {self.failed} failed"


# ==============================================================================
# Validation Tests
# ==============================================================================

def validate_prior_sampler(n_tests: int = 20, seed: int = 42) -> ValidationResults:
    """Sampler output has length m and lies strictly inside (-π, π)."""
    results = ValidationResults()
    rng = np.random.default_rng(seed)

    for _ in range(n_tests):
        mu = rng.uniform(-np.pi, np.pi)
        sigma = rng.uniform(0.0, 3.0)
        m = int(rng.integers(1, 2000))
        samples = sample_restricted_gaussian(mu, sigma, m, rng)
        results.record(
            f"sampler mu={mu:.3f} sigma={sigma:.3f} m={m}",
            samples.size == m and bool(np.all(np.abs(samples) < np.pi)),
            f"len={samples.size}, max|x|={np.max(np.abs(samples)):.6f}",
        )

    return results


def validate_evidence_generator(seed: int = 42) -> ValidationResults:
    """Evidence counts sum to N and their frequency tracks P(0 | φ)."""
    results = ValidationResults()
    rng = np.random.default_rng(seed)
    params = CircuitParameters(M=3.0, theta=0.4)
    phi = 1.1

    for n in (0, 1, 17, 1000):
        evidence = run_qpe_circuit(phi, params, n, rng)
        results.record(f"n0 + n1 == {n}", evidence.total == n, f"({evidence.n0}, {evidence.n1})")

    n = 200000
    p0 = outcome_zero_probability(phi, params)
    evidence = run_qpe_circuit(phi, params, n, rng)
    freq = evidence.n0 / n
    results.record(
        "frequency of outcome 0 approaches P(0|φ)",
        abs(freq - p0) < 0.01,
        f"freq={freq:.5f}, p0={p0:.5f}",
    )

    return results


def validate_rejection_filter(n_tests: int = 20, seed: int = 42) -> ValidationResults:
    """Filter output is well formed; single acceptance halves the spread."""
    results = ValidationResults()
    rng = np.random.default_rng(seed)

    for _ in range(n_tests):
        samples = sample_restricted_gaussian(rng.uniform(-1, 1), rng.uniform(0.01, 1.5), 500, rng)
        params = CircuitParameters(M=rng.uniform(0.5, 20.0), theta=rng.uniform(-np.pi, np.pi))
        n0 = int(rng.integers(0, 50))
        update = rejection_filter(samples, Evidence(n0, 50 - n0), params, 1.0, rng)
        results.record(
            f"std ≥ 0 (M={params.M:.2f}, n0={n0})",
            update.std >= 0 and update.n_accepted >= 1,
            f"std={update.std:.4e}, accepted={update.n_accepted}",
        )

    # s = 0 matches all-zero evidence perfectly; the others underflow to weight 0
    samples = np.array([0.0, 2.5, -2.5, 3.0])
    update = rejection_filter(samples, Evidence(1000, 0), CircuitParameters(1.0, 0.0), 0.8, rng)
    results.record(
        "single acceptance halves previous std",
        update.n_accepted == 1 and update.std == 0.4 and update.mean == 0.0,
        f"accepted={update.n_accepted}, std={update.std}",
    )

    return results


def validate_resource_estimates() -> ValidationResults:
    """Documented evidence sample counts and the automatic cap."""
    results = ValidationResults()

    n = required_evidence_samples(1e-4, 0.5)
    results.record("N(ε=1e-4, α=0.5) == 39996", n == 39996, f"N={n}")

    n = required_evidence_samples(1e-4, 1.0)
    results.record("N(ε=1e-4, α=1) == 37", n == 37, f"N={n}")

    with warnings.catch_warnings():
        warnings.simplefilter("ignore", RuntimeWarning)
        n = resolve_evidence_samples(0, 1e-10, 0.0)
    results.record("automatic N capped", n == MAX_EVIDENCE_SAMPLES, f"N={n}")

    n = resolve_evidence_samples(0, 1e-10, 0.0, explicit_auto=True)
    results.record("explicit automatic N not capped", n > MAX_EVIDENCE_SAMPLES, f"N={n}")

    return results


def validate_driver(repetitions: int = 10, seed: int = 42) -> ValidationResults:
    """Reproducibility and convergence of the full estimation loop."""
    results = ValidationResults()
    precision = 1e-2
    config = ExperimentConfig(
        target_phi=np.pi / 2,
        precision=precision,
        alpha=1.0,
        evidence_samples=required_evidence_samples(precision, 1.0),
        prior_samples=1000,
        repetitions=repetitions,
    )

    runs = [AQPEExperiment(config, seed=seed), AQPEExperiment(config, seed=seed)]
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", RuntimeWarning)
        first, second = (exp.run() for exp in runs)

    outcomes = [
        [(r.converged, r.iterations, r.estimated_phi) for r in exp.results]
        for exp in runs
    ]
    results.record(
        "fixed seed reproduces every experiment",
        outcomes[0] == outcomes[1],
        f"{first.convergence_count} and {second.convergence_count} converged",
    )
    results.record(
        "majority of experiments converge",
        first.convergence_count * 2 >= repetitions,
        f"{first.convergence_count} of {repetitions}",
    )
    if first.convergence_count:
        results.record(
            f"average error within {WRONG_CONVERGENCE_SIGMA:g}× precision",
            first.average_absolute_error < WRONG_CONVERGENCE_SIGMA * precision
            or first.wrong_convergence_count * 2 < first.convergence_count,
            f"error={first.average_absolute_error:.3e}",
        )

    return results


def run_validation(verbose: bool = True, full: bool = True) -> Dict[str, ValidationResults]:
    """
    Run all validation checks.

    Args:
        verbose: Print each check and a summary
        full: Include the slower end-to-end driver checks

    Returns:
        Dictionary of named ValidationResults
    """
    all_results = {
        "prior_sampler": validate_prior_sampler(),
        "evidence_generator": validate_evidence_generator(),
        "rejection_filter": validate_rejection_filter(),
        "resource_estimates": validate_resource_estimates(),
    }
    if full:
        all_results["driver"] = validate_driver()

    if verbose:
        for section, res in all_results.items():
            print(f"\n{section.replace('_', ' ').upper()}:")
            for entry in res.results:
                print(f"  {entry['status']}  {entry['name']}  {entry['details']}")
            print(f"  -> {res.summary()}")

        total_passed = sum(r.passed for r in all_results.values())
        total_failed = sum(r.failed for r in all_results.values())
        print(f"\n{'='*80}")
        print(f"TOTAL: {total_passed} passed, {total_failed} failed")
        print(f"{'='*80}")

    return all_results

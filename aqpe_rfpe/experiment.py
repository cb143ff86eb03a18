"""
Experiment runner for AQPE via rejection filtering.

This module provides the AQPEExperiment class that handles:
- Seeding and per-repetition random streams
- The iterative loop: circuit parameters → evidence → priors → filter
- Convergence and iteration-cap termination
- Aggregation across repetitions and result export
"""

import json
import sys
import time
import warnings
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

import numpy as np
from tqdm import tqdm

from .analysis import (
    ExperimentResult,
    IterationRecord,
    RunSummary,
    aggregate_results,
)
from .circuit import derive_circuit_parameters, run_qpe_circuit
from .config import ExperimentConfig, POSTERIOR_STD_INCREASE_FACTOR
from .priors import sample_restricted_gaussian
from .rfpe import Belief, DegenerateFilterError, rejection_filter


def seed_from_clock() -> int:
    """Seed derived from the time of day (seconds and microseconds mixed)."""
    now = time.time()
    seconds = int(now)
    microseconds = int((now - seconds) * 1e6)
    return ((seconds >> 10) ^ (microseconds << 10)) + 1


def run_single_experiment(
    config: ExperimentConfig,
    rng: np.random.Generator,
    experiment_no: int = 1,
    increase_factor: float = POSTERIOR_STD_INCREASE_FACTOR,
) -> ExperimentResult:
    """
    Run one AQPE experiment from the initial belief until convergence
    or until the iteration cap is reached.

    A filter step that accepts no samples leaves the belief unchanged
    for that iteration; it is recorded as degenerate and still counts
    toward the iteration cap.

    Args:
        config: Run configuration
        rng: Random generator owned by this experiment
        experiment_no: 1-based experiment index (for reporting)
        increase_factor: Posterior spread multiplier

    Returns:
        ExperimentResult with the per-iteration trace
    """
    belief = Belief.initial()
    trace: List[IterationRecord] = []
    degenerate_steps = 0
    converged = False
    iterations = 0

    if config.verbose:
        print(f"\nStarting AQPE Experiment #{experiment_no}:")
        print("-" * 31)
        print(f"Iteration 0: mean = {belief.mean:.6e}, std = {belief.std:.6e}")

    for i in range(config.max_iterations):
        iterations = i + 1
        params = derive_circuit_parameters(belief.mean, belief.std, config.alpha)

        evidence = run_qpe_circuit(config.target_phi, params, config.evidence_samples, rng)
        priors = sample_restricted_gaussian(belief.mean, belief.std, config.prior_samples, rng)

        try:
            update = rejection_filter(
                priors, evidence, params, belief.std, rng, increase_factor=increase_factor,
            )
        except DegenerateFilterError as e:
            degenerate_steps += 1
            warnings.warn(
                f"Experiment #{experiment_no}, iteration {iterations}: {e}. "
                f"Keeping the previous belief.",
                RuntimeWarning,
            )
            n_accepted = 0
            degenerate = True
        else:
            belief = update.belief
            n_accepted = update.n_accepted
            degenerate = False

        trace.append(IterationRecord(
            iteration=iterations,
            mean=belief.mean,
            std=belief.std,
            M=params.M,
            theta=params.theta,
            n0=evidence.n0,
            n1=evidence.n1,
            n_accepted=n_accepted,
            degenerate=degenerate,
        ))

        if config.verbose:
            print(f"Iteration {iterations}: mean = {belief.mean:.6e}, std = {belief.std:.6e}")

        if belief.std < config.precision:
            converged = True
            break

    if config.verbose:
        if converged:
            print(f"\nAQPE Experiment #{experiment_no}: ✓ precision reached in {iterations} "
                  f"circuit mappings (mean = {belief.mean:.6e}, std = {belief.std:.6e})")
        else:
            print(f"\nAQPE Experiment #{experiment_no}: ✗ no convergence within "
                  f"{config.max_iterations} circuit mappings "
                  f"(mean = {belief.mean:.6e}, std = {belief.std:.6e})")

    return ExperimentResult(
        experiment_no=experiment_no,
        converged=converged,
        iterations=iterations,
        estimated_phi=belief.mean,
        final_std=belief.std,
        degenerate_steps=degenerate_steps,
        trace=trace,
    )


class AQPEExperiment:
    """
    Runner for repeated AQPE experiments.

    Each repetition gets its own generator spawned from a single
    SeedSequence, so a fixed seed reproduces the whole run.

    Example usage:
        config = ExperimentConfig(target_phi=np.pi / 2, precision=1e-2, alpha=1.0)
        exp = AQPEExperiment(config, seed=1234)
        summary = exp.run()
        exp.print_summary()
        exp.save_results("aqpe_results.json")

    Attributes:
        config: Immutable run configuration
        seed: Root seed of the run
        results: Per-experiment results of the last run
        summary: Aggregate statistics of the last run
    """

    def __init__(
        self,
        config: ExperimentConfig,
        seed: Optional[int] = None,
    ):
        self.config = config
        self.seed = seed_from_clock() if seed is None else int(seed)
        self.timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        self.results: List[ExperimentResult] = []
        self.summary: Optional[RunSummary] = None

    def generators(self) -> List[np.random.Generator]:
        """Independent generators, one per repetition."""
        children = np.random.SeedSequence(self.seed).spawn(self.config.repetitions)
        return [np.random.default_rng(child) for child in children]

    def run(self, progress: bool = False) -> RunSummary:
        """
        Run all repetitions and aggregate their statistics.

        Args:
            progress: Show a progress bar over repetitions

        Returns:
            RunSummary of this run
        """
        rngs = self.generators()
        iterator = enumerate(rngs, start=1)
        if progress:
            iterator = tqdm(iterator, total=len(rngs), desc="Experiments", unit="exp")

        self.results = [
            run_single_experiment(self.config, rng, experiment_no=k)
            for k, rng in iterator
        ]
        self.summary = aggregate_results(
            self.results,
            self.config.target_phi,
            self.config.precision,
            seed=self.seed,
        )
        return self.summary

    def print_summary(self) -> None:
        """Print the aggregate statistics of the last run."""
        if self.summary is None:
            raise ValueError("No results yet. Call run() first.")

        s = self.summary
        print(f"\n{'='*80}")
        print("RESULTS SUMMARY")
        print(f"{'='*80}")

        if s.all_failed:
            print(f"Convergence failed for all {s.total_repetitions} AQPE experiments within "
                  f"the maximum of {self.config.max_iterations} circuit mappings.")
        else:
            print(f"Converged:            {s.convergence_count} of {s.total_repetitions}")
            print(f"Average iterations:   {s.average_iterations:.4f}")
            print(f"Average phase error:  {s.average_absolute_error:.6e}")
            print(f"Wrong convergences:   {s.wrong_convergence_count} of {s.convergence_count} "
                  f"(error > {s.wrong_convergence_threshold:.6e})")

        degenerate = sum(r.degenerate_steps for r in self.results)
        if degenerate:
            print(f"Degenerate filter steps: {degenerate}")

    def save_results(
        self,
        filepath: Optional[Union[str, Path]] = None,
        include_trace: bool = False,
    ) -> Path:
        """
        Save configuration, per-experiment results and summary to JSON.

        Args:
            filepath: Output path. If None, auto-generates based on timestamp.
            include_trace: Also store per-iteration traces

        Returns:
            Path to saved file
        """
        if self.summary is None:
            raise ValueError("No results yet. Call run() first.")

        if filepath is None:
            filepath = f"aqpe_rfpe_{self.timestamp}.json"
        filepath = Path(filepath)

        payload = {
            "metadata": {
                "timestamp": self.timestamp,
                "seed": self.seed,
            },
            "config": self.config.to_dict(),
            "experiments": [r.to_dict(include_trace) for r in self.results],
            "summary": self.summary.to_dict(),
        }

        with open(filepath, "w") as f:
            json.dump(_to_builtin(payload), f, indent=2, allow_nan=False)

        print(f"\nResults saved to: {filepath}", file=sys.stderr)
        return filepath


def _to_builtin(obj):
    """Convert numpy scalars and arrays for JSON serialization (NaN -> null)."""
    if isinstance(obj, np.ndarray):
        return _to_builtin(obj.tolist())
    if isinstance(obj, (float, np.floating)):
        return None if np.isnan(obj) else float(obj)
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.bool_):
        return bool(obj)
    if isinstance(obj, dict):
        return {k: _to_builtin(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_to_builtin(v) for v in obj]
    return obj

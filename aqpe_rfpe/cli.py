#!/usr/bin/env python3
"""
Command-line interface for AQPE via RFPE.

Usage:
    # Defaults: target phase π/2, precision 1e-2, α = 1
    aqpe-rfpe

    # Shallower circuits, more samples, 100 repetitions
    aqpe-rfpe -p 1e-4 -a 0.5 -r 100

    # Permit an automatic sample count above the default cap
    aqpe-rfpe -p 1e-6 -a 0.2 -n 0

    # Per-iteration traces, fixed seed, JSON output
    aqpe-rfpe -v --seed 1234 --output results.json

    # Run validation only
    aqpe-rfpe --validate-only
"""

import argparse
import sys
import warnings
from typing import List, Optional

from .analysis import required_circuit_depth, required_evidence_samples, resolve_evidence_samples
from .config import (
    DEFAULT_ALPHA,
    DEFAULT_EVIDENCE_SAMPLES,
    DEFAULT_PRECISION,
    DEFAULT_PRIOR_SAMPLES,
    DEFAULT_REPETITIONS,
    DEFAULT_TARGET_PHI,
    MAX_ALPHA,
    MAX_ITERATIONS,
    MAX_PHI,
    MAX_PRECISION,
    MIN_ALPHA,
    MIN_PHI,
    MIN_PRECISION,
    ExperimentConfig,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aqpe-rfpe",
        description="Accelerated Quantum Phase Estimation (AQPE) using "
                    "Rejection Filtering Phase Estimation (RFPE)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    # Estimation problem
    parser.add_argument(
        "-t", "--target-phi",
        type=float,
        default=None,
        help="Target phase in [-π, π] (default: π/2)",
    )
    parser.add_argument(
        "-p", "--precision",
        type=float,
        default=None,
        help=f"Precision in [{MIN_PRECISION:g}, {MAX_PRECISION:g}] (default: {DEFAULT_PRECISION:g})",
    )
    parser.add_argument(
        "-a", "--alpha",
        type=float,
        default=None,
        help=f"Depth exponent α in [0, 1] (default: {DEFAULT_ALPHA:g})",
    )

    # Sampling
    parser.add_argument(
        "-n", "--evidence-samples",
        type=int,
        default=None,
        help="Circuit samples per iteration; 0 selects automatically without the cap "
             "(default: automatic, capped)",
    )
    parser.add_argument(
        "-m", "--prior-samples",
        type=int,
        default=DEFAULT_PRIOR_SAMPLES,
        help=f"Prior test samples per iteration (default: {DEFAULT_PRIOR_SAMPLES})",
    )
    parser.add_argument(
        "-r", "--repetitions",
        type=int,
        default=DEFAULT_REPETITIONS,
        help=f"Number of independent AQPE experiments (default: {DEFAULT_REPETITIONS})",
    )
    parser.add_argument(
        "--max-iterations",
        type=int,
        default=MAX_ITERATIONS,
        help=f"Iteration cap per experiment (default: {MAX_ITERATIONS})",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed (default: derived from the time of day)",
    )

    # Output
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Print details of each experiment",
    )
    parser.add_argument(
        "--progress",
        action="store_true",
        help="Show a progress bar over repetitions",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Save results to this JSON file",
    )
    parser.add_argument(
        "--validate-only",
        action="store_true",
        help="Run validation checks only, no experiment",
    )
    return parser


def _in_range(name: str, value: Optional[float], low: float, high: float, default: float) -> float:
    """Return value if inside [low, high], otherwise warn and return default."""
    if value is None:
        return default
    if value < low or value > high:
        warnings.warn(
            f"{name} should be in [{low:e}, {high:e}]. "
            f"Continuing with the default value {default:e}.",
            UserWarning,
        )
        return default
    return value


def config_from_args(args: argparse.Namespace) -> ExperimentConfig:
    """
    Validate parsed arguments and build the run configuration.

    Out-of-range phase, precision and α fall back to their defaults with a
    warning. Invalid counts raise ValueError.
    """
    target_phi = _in_range("target phase", args.target_phi, MIN_PHI, MAX_PHI, DEFAULT_TARGET_PHI)
    precision = _in_range("precision", args.precision, MIN_PRECISION, MAX_PRECISION, DEFAULT_PRECISION)
    alpha = _in_range("alpha", args.alpha, MIN_ALPHA, MAX_ALPHA, DEFAULT_ALPHA)

    if args.evidence_samples is not None and args.evidence_samples < 0:
        raise ValueError(
            "number of evidence samples per iteration must be a non-negative integer. "
            "Use '-n 0' to trigger automatic selection."
        )
    if args.prior_samples <= 0:
        raise ValueError("number of prior test samples per iteration must be a positive integer.")
    if args.repetitions <= 0:
        raise ValueError("number of repetitions must be a positive integer.")
    if args.max_iterations <= 0:
        raise ValueError("maximum number of iterations must be a positive integer.")

    requested = DEFAULT_EVIDENCE_SAMPLES if args.evidence_samples is None else args.evidence_samples
    evidence_samples = resolve_evidence_samples(
        requested,
        precision,
        alpha,
        explicit_auto=args.evidence_samples is not None,
    )

    return ExperimentConfig(
        target_phi=target_phi,
        precision=precision,
        alpha=alpha,
        evidence_samples=evidence_samples,
        prior_samples=args.prior_samples,
        repetitions=args.repetitions,
        verbose=args.verbose,
        max_iterations=args.max_iterations,
    )


def print_config(config: ExperimentConfig) -> None:
    """Print the resolved configuration and the circuit resources it implies."""
    if config.verbose:
        print("\nIn verbose mode!")
    print(f"✓ AQPE configuration")
    print(f"  Target phase:               {config.target_phi:f}")
    print(f"  Alpha:                      {config.alpha:f}")
    print(f"  Precision:                  {config.precision:e}")
    print(f"  Evidence samples/iteration: {config.evidence_samples}")
    print(f"  Prior samples/iteration:    {config.prior_samples}")
    print(f"  Repetitions:                {config.repetitions}")
    print(f"  Required circuit depth:     "
          f"{required_circuit_depth(config.precision, config.alpha)}  (1 / precision^alpha)")
    print(f"  Required circuit samples:   "
          f"{required_evidence_samples(config.precision, config.alpha)}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.validate_only:
        from .validation import run_validation
        print("Running validation checks...")
        results = run_validation(verbose=True, full=True)
        total_failed = sum(r.failed for r in results.values())
        return 1 if total_failed > 0 else 0

    try:
        config = config_from_args(args)
    except ValueError as e:
        print(f"\nError: {e}", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return 1

    print_config(config)

    # Import here to avoid slow imports for --help
    from .experiment import AQPEExperiment

    exp = AQPEExperiment(config, seed=args.seed)
    print(f"Setting random seed to {exp.seed}.", file=sys.stderr)

    exp.run(progress=args.progress)
    exp.print_summary()

    if args.output:
        exp.save_results(args.output, include_trace=config.verbose)

    if not config.verbose:
        print("\nTo print details of all experiments, run in verbose mode using '-v'.")

    return 0


if __name__ == "__main__":
    sys.exit(main())

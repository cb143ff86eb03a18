"""
Rejection Filtering Phase Estimation (RFPE).

One Bayesian update of a Gaussian belief over the phase:

    1. Draw m prior test samples s_i from the current belief.
    2. Weight each by the likelihood of the observed evidence (n0, n1):
           L_i = n0·log q_i + n1·log(1 - q_i),   q_i = P(0 | s_i; M, θ)
       The binomial coefficient is constant across samples and omitted.
    3. Re-centre log-likelihoods on their maximum after each outcome class
       is folded in, so that w_i = exp(L_i) ∈ [0, 1] and the best sample
       has weight exactly 1.
    4. Accept s_i with probability w_i.
    5. The posterior is the Gaussian moment-matched to the accepted samples.

A single accepted sample would give a zero-variance posterior and freeze
the filter; in that case the previous standard deviation is halved instead.
If no sample is accepted (every likelihood underflows to zero) the update
is undefined and DegenerateFilterError is raised.
"""

from dataclasses import dataclass

import numpy as np
from scipy.special import xlogy

from .circuit import CircuitParameters, Evidence, outcome_zero_probability
from .config import INITIAL_MEAN, INITIAL_STD, POSTERIOR_STD_INCREASE_FACTOR


class DegenerateFilterError(RuntimeError):
    """Raised when a filter step accepts no prior samples."""


@dataclass(frozen=True)
class Belief:
    """Gaussian approximation N(mean, std²) of the phase posterior."""
    mean: float
    std: float

    @classmethod
    def initial(cls) -> "Belief":
        return cls(mean=INITIAL_MEAN, std=INITIAL_STD)


@dataclass(frozen=True)
class FilterResult:
    """Outcome of one rejection filter step."""
    mean: float
    std: float
    n_accepted: int

    @property
    def belief(self) -> Belief:
        return Belief(mean=self.mean, std=self.std)


def log_likelihoods(
    prior_samples: np.ndarray,
    evidence: Evidence,
    params: CircuitParameters,
) -> np.ndarray:
    """
    Unnormalized, max-centred log-likelihoods of the evidence per sample.

    The running log-likelihood is re-centred after the n0 term and again
    after the n1 term, so the result is ≤ 0 with maximum exactly 0.
    Terms with a zero count contribute 0 even where the probability is 0.

    Raises:
        DegenerateFilterError: if every sample has zero likelihood
    """
    q0 = outcome_zero_probability(np.asarray(prior_samples, dtype=float), params)
    log_like = np.zeros_like(q0)

    for count, probs in ((evidence.n0, q0), (evidence.n1, 1.0 - q0)):
        log_like += xlogy(count, probs)
        peak = np.max(log_like)
        if not np.isfinite(peak):
            raise DegenerateFilterError(
                f"All {log_like.size} prior samples have zero likelihood "
                f"for evidence (n0={evidence.n0}, n1={evidence.n1})"
            )
        log_like -= peak

    return log_like


def rejection_filter(
    prior_samples: np.ndarray,
    evidence: Evidence,
    params: CircuitParameters,
    previous_std: float,
    rng: np.random.Generator,
    increase_factor: float = POSTERIOR_STD_INCREASE_FACTOR,
) -> FilterResult:
    """
    Update the belief from prior samples and circuit evidence.

    Args:
        prior_samples: Candidate phases drawn from the current belief
        evidence: Outcome counts produced with the same params
        params: Circuit parameters (M, θ) used to generate the evidence
        previous_std: Standard deviation of the current belief
        rng: Random generator for the acceptance draws
        increase_factor: Multiplier applied to the posterior spread

    Returns:
        FilterResult with the new mean, standard deviation and the
        number of accepted samples

    Raises:
        DegenerateFilterError: if no sample is accepted
    """
    prior_samples = np.asarray(prior_samples, dtype=float)
    if prior_samples.size == 0:
        raise DegenerateFilterError("No prior samples to filter")

    weights = np.exp(log_likelihoods(prior_samples, evidence, params))

    accepted = prior_samples[rng.random(prior_samples.size) <= weights]
    n_accepted = int(accepted.size)

    if n_accepted == 0:
        raise DegenerateFilterError("Rejection filter accepted no prior samples")

    if n_accepted == 1:
        return FilterResult(mean=float(accepted[0]), std=previous_std / 2, n_accepted=1)

    # Population std (two-pass, ddof=0)
    std = float(np.std(accepted)) * increase_factor

    return FilterResult(mean=float(np.mean(accepted)), std=std, n_accepted=n_accepted)

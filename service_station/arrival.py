from __future__ import annotations

"""Arrival models for car generation.

Two models are supported:
- uniform gaps: the next car shows up between `min_seconds` and `max_seconds`
  after the previous one (1-2 s by default, as the station has always done)
- Poisson arrivals with rate λ (cars/second): inter-arrival times are
  i.i.d. Exponential(λ)
"""

import random


def sample_uniform_interarrival(
    *, min_seconds: float, max_seconds: float, rng: random.Random | None = None
) -> float:
    """Sample the gap (seconds) before the next car arrives."""
    if min_seconds < 0:
        raise ValueError("min_seconds must be >= 0")
    if max_seconds < min_seconds:
        raise ValueError("max_seconds must be >= min_seconds")

    r = rng or random
    return float(r.uniform(min_seconds, max_seconds))


def sample_exponential_interarrival(*, rate_per_sec: float, rng: random.Random | None = None) -> float:
    """Sample the next inter-arrival time (seconds) for a Poisson process.

    Args:
        rate_per_sec: λ, the arrival rate in cars/second. Must be > 0.
        rng: optional RNG (useful for deterministic tests).

    Returns:
        A positive float representing seconds until the next arrival.
    """
    if rate_per_sec <= 0:
        raise ValueError("rate_per_sec must be > 0")

    r = rng or random
    return float(r.expovariate(rate_per_sec))

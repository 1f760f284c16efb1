from __future__ import annotations

# Service time helpers.
#
# Washing/fuelling a car takes a random amount of time drawn uniformly from
# [min_seconds, max_seconds] (2-6 s by default in the CLI).

import random


def sample_service_seconds(
    *, min_seconds: float, max_seconds: float, rng: random.Random | None = None
) -> float:
    """Sample how long a pump spends on one car.

    Args:
        min_seconds: shortest service (>= 0).
        max_seconds: longest service (>= min_seconds).
        rng: optional RNG (useful for deterministic tests).

    Returns:
        Non-negative float.
    """
    if min_seconds < 0:
        raise ValueError("min_seconds must be >= 0")
    if max_seconds < min_seconds:
        raise ValueError("max_seconds must be >= min_seconds")

    r = rng or random
    return float(r.uniform(min_seconds, max_seconds))

import random

import pytest

from service_station.service_time import sample_service_seconds


def test_sample_service_seconds_in_range():
    rng = random.Random(1)
    for _ in range(50):
        assert 2.0 <= sample_service_seconds(min_seconds=2.0, max_seconds=6.0, rng=rng) <= 6.0


def test_fixed_service_time():
    assert sample_service_seconds(min_seconds=0.5, max_seconds=0.5) == 0.5


def test_sample_service_seconds_rejects_bad_range():
    with pytest.raises(ValueError):
        sample_service_seconds(min_seconds=-1.0, max_seconds=1.0)
    with pytest.raises(ValueError):
        sample_service_seconds(min_seconds=3.0, max_seconds=1.0)

"""Inter-call delay bounds"""

import random

import pytest

from strike_trainer.delay_policy import DelayPolicy, adjusted_bounds
from strike_trainer.ft_config import INTENSITY_MODE_DELAY_MS
from strike_trainer.ft_models import Intensity, Mode, TrainingConfig

EPS = 1e-6


@pytest.fixture
def policy():
    return DelayPolicy(random.Random(7))


@pytest.mark.parametrize("intensity, low, high", [
    (Intensity.NORMAL, 1.0, 3.0),
    (Intensity.SLOW, 1.8, 4.2),
    (Intensity.FAST, 0.5, 2.2),
])
def test_samples_stay_inside_adjusted_bounds(policy, intensity, low, high):
    config = TrainingConfig(min_delay_sec=1.0, max_delay_sec=3.0, intensity=intensity)
    assert adjusted_bounds(config) == pytest.approx((low, high))
    for _ in range(500):
        delay = policy.next_delay_ms(config)
        assert low * 1000 - EPS <= delay <= high * 1000 + EPS


def test_inverted_range_is_reordered(policy):
    config = TrainingConfig(min_delay_sec=4.0, max_delay_sec=1.5)   # not normalized on purpose
    low, high = adjusted_bounds(config)
    assert low <= high
    assert (low, high) == pytest.approx((1.5, 4.0))
    for _ in range(200):
        assert 1500 - EPS <= policy.next_delay_ms(config) <= 4000 + EPS


def test_fast_clamps_to_floor():
    config = TrainingConfig(min_delay_sec=0.3, max_delay_sec=0.5, intensity=Intensity.FAST)
    assert adjusted_bounds(config) == pytest.approx((0.2, 0.2))


@pytest.mark.parametrize("intensity", list(Intensity))
@pytest.mark.parametrize("bounds", [(0.1, 0.2), (1.0, 3.0), (5.0, 9.0)])
def test_intensity_mode_is_fixed_cadence(policy, intensity, bounds):
    config = TrainingConfig(mode=Mode.INTENSITY, intensity=intensity,
                            min_delay_sec=bounds[0], max_delay_sec=bounds[1])
    assert policy.next_delay_ms(config) == INTENSITY_MODE_DELAY_MS == 450

"""
Inter-call delay for the call loop.

Bounds come from the config, shifted by intensity before sampling.
The dedicated ``intensity`` mode ignores all of that and uses a fixed
short cadence.
"""

import random
from typing import Optional

from .ft_config import INTENSITY_MODE_DELAY_MS
from .ft_models import Intensity, Mode, TrainingConfig


def adjusted_bounds(config: TrainingConfig):
    """Return (low, high) in seconds after the intensity adjustment, low <= high."""
    low, high = config.min_delay_sec, config.max_delay_sec
    if config.intensity == Intensity.SLOW:
        low += 0.8
        high += 1.2
    elif config.intensity == Intensity.FAST:
        low = max(0.2, low - 0.5)
        high = max(low, high - 0.8)
    return min(low, high), max(low, high)


class DelayPolicy:
    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def next_delay_ms(self, config: TrainingConfig) -> float:
        if config.mode == Mode.INTENSITY:
            return INTENSITY_MODE_DELAY_MS
        low, high = adjusted_bounds(config)
        return self.rng.uniform(low, high) * 1000.0

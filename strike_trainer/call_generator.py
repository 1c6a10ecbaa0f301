#!/usr/bin/env python3
"""
Call Generator for Striking Drills
Picks the next prompt (strike, combo, defense or defense/counter pair) for a mode
"""

import random
from typing import Optional

from .ft_models import Call, CounterCall, Mode, SimpleCall
from .ft_vocabulary import DEFAULT_VOCABULARY, Vocabulary


class CallGenerator:
    """Generate random calls for a training mode. Holds no session state."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def generate(self, mode: Mode, vocab: Vocabulary = DEFAULT_VOCABULARY) -> Call:
        """
        Generate one call for the given mode

        Args:
            mode: Training mode
            vocab: Tables to draw from (assumed validated, i.e. non-empty)

        Returns:
            SimpleCall for plain modes, CounterCall for the counter modes
            Example: CounterCall(defense='Parry', counter='Jab Cross Hook')
        """
        if mode == Mode.COMBO:
            return SimpleCall(self.rng.choice(vocab.combos))

        if mode == Mode.MIXED:
            table = vocab.singles if self.rng.random() < 0.5 else vocab.combos
            return SimpleCall(self.rng.choice(table))

        if mode == Mode.DEFENSE:
            return SimpleCall(self.rng.choice(vocab.defenses))

        if mode == Mode.COUNTER_SIMPLE:
            defense = self.rng.choice(vocab.defenses)
            counter = vocab.counters.get(defense) or self.rng.choice(vocab.singles)
            return CounterCall(defense, counter)

        if mode == Mode.COUNTER_COMBO:
            defense = self.rng.choice(vocab.defenses)
            return CounterCall(defense, self.rng.choice(vocab.combos))

        # single, and intensity (which differs only in pacing)
        return SimpleCall(self.rng.choice(vocab.singles))


# Singleton instance
call_generator = CallGenerator()

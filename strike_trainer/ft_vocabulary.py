"""
Static vocabulary tables for call generation.

These are read-only reference data; sessions never own or mutate them.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Tuple

SINGLES: Tuple[str, ...] = (
    "Jab", "Cross", "Hook", "Uppercut", "Low Kick", "High Kick", "Elbow",
    "Teep", "Knee", "Slip", "Block", "Sprawl",
)

COMBOS: Tuple[str, ...] = (
    "Jab Cross", "Jab Cross Hook", "Cross Hook Low Kick", "Jab Cross Uppercut",
    "Jab Jab Cross", "Cross Body Hook", "Jab Cross Hook Low Kick",
)

DEFENSES: Tuple[str, ...] = (
    "Slip Left", "Slip Right", "Block", "Sprawl", "Clinch", "Pivot Out", "Check Kick", "Parry",
)

# Fixed counter for each defense (counter_simple mode)
SIMPLE_COUNTERS: Mapping[str, str] = MappingProxyType({
    "Slip Left": "Cross",
    "Slip Right": "Cross",
    "Block": "Uppercut",
    "Sprawl": "Cross",
    "Clinch": "Knee",
    "Pivot Out": "Jab",
    "Check Kick": "Jab Cross",
    "Parry": "Jab Cross Hook",
})


@dataclass(frozen=True)
class Vocabulary:
    """Bundle of the tables a CallGenerator draws from"""
    singles: Tuple[str, ...] = SINGLES
    combos: Tuple[str, ...] = COMBOS
    defenses: Tuple[str, ...] = DEFENSES
    counters: Mapping[str, str] = field(default_factory=lambda: SIMPLE_COUNTERS)

    def validate(self) -> "Vocabulary":
        """
        Raise ValueError if any table is empty.

        An empty table is a configuration error; call this once at startup
        so it fails fast instead of mid-round.
        """
        for name in ("singles", "combos", "defenses"):
            if not getattr(self, name):
                raise ValueError(f"Vocabulary table '{name}' is empty")
        return self

    def to_dict(self):
        return {
            "singles": list(self.singles),
            "combos": list(self.combos),
            "defenses": list(self.defenses),
            "counters": dict(self.counters),
        }


DEFAULT_VOCABULARY = Vocabulary()

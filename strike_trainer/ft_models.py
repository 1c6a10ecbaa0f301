"""
Dataclasses, enums and small model helpers used throughout the system.
"""

import logging
import math
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Type, Union

from .ft_config import VOICE_PROFILE

logger = logging.getLogger(__name__)


def utcnow_iso() -> str:
    """UTC timestamp in ISO 8601 format (seconds precision)."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class Mode(str, Enum):
    """What kind of prompt is called during a round"""
    SINGLE = "single"
    COMBO = "combo"
    MIXED = "mixed"
    INTENSITY = "intensity"          # singles at a fixed fast cadence
    DEFENSE = "defense"
    COUNTER_SIMPLE = "counter_simple"  # defense -> mapped counter
    COUNTER_COMBO = "counter_combo"    # defense -> random combo


class Intensity(str, Enum):
    SLOW = "slow"
    NORMAL = "normal"
    FAST = "fast"


class SignalKind(str, Enum):
    DING = "ding"
    GONG = "gong"
    BUZZER = "buzzer"


class VoiceProfile(str, Enum):
    STANDARD = "standard"
    DEEP = "deep"


class FlashKind(str, Enum):
    ACCENT = "accent"
    DANGER = "danger"


class Phase(str, Enum):
    """Externally visible session phase"""
    IDLE = "idle"
    STARTING = "starting"
    READY_SIGNAL = "ready_signal"
    ACTIVE = "active"
    ROUND_ENDED = "round_ended"
    RESTING = "resting"
    PAUSED = "paused"
    STOPPED = "stopped"
    FINISHED = "finished"


# Speech hints
SPEECH_RATE = {
    Intensity.SLOW: 0.95,
    Intensity.NORMAL: 1.05,
    Intensity.FAST: 1.4,
}
SPEECH_PITCH = {
    VoiceProfile.STANDARD: 0.95,
    VoiceProfile.DEEP: 0.75,
}


def _parse_enum(enum_cls: Type[Enum], value: Any, default: Enum) -> Enum:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        logger.warning(f"Unknown {enum_cls.__name__} value {value!r}, using {default.value}")
        return default


def _parse_float(value: Any, default: float) -> float:
    """float(value), or default for junk and for inf/nan."""
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    return number if math.isfinite(number) else default


def _parse_int(value: Any, default: int) -> int:
    number = _parse_float(value, None)
    return default if number is None else int(number)


@dataclass(frozen=True)
class TrainingConfig:
    """
    Settings for a training session.

    Instances are immutable; a RoundClock takes the current instance as its
    snapshot when the round starts, so edits never reach an in-flight round.
    """
    mode: Mode = Mode.SINGLE
    intensity: Intensity = Intensity.NORMAL
    min_delay_sec: float = 1.0
    max_delay_sec: float = 3.0
    round_duration_sec: int = 60
    rest_duration_sec: int = 20
    total_rounds: int = 3            # 0 = unlimited
    signal_kind: SignalKind = SignalKind.DING
    voice_profile: VoiceProfile = VoiceProfile.STANDARD

    @classmethod
    def defaults(cls) -> "TrainingConfig":
        """Reset defaults; the voice comes from STRIKE_TRAINER_VOICE_PROFILE."""
        return cls(voice_profile=_parse_enum(VoiceProfile, VOICE_PROFILE, VoiceProfile.STANDARD))

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]], base: Optional["TrainingConfig"] = None) -> "TrainingConfig":
        """
        Build a config from loosely typed input (form fields, JSON).

        Keys missing from ``data`` keep their value from ``base`` (or the
        defaults). Values that cannot be parsed fall back the same way.
        The result is always normalized.
        """
        base = base or cls.defaults()
        data = data or {}
        return cls(
            mode=_parse_enum(Mode, data.get("mode", base.mode), base.mode),
            intensity=_parse_enum(Intensity, data.get("intensity", base.intensity), base.intensity),
            min_delay_sec=_parse_float(data.get("min_delay_sec", base.min_delay_sec), base.min_delay_sec),
            max_delay_sec=_parse_float(data.get("max_delay_sec", base.max_delay_sec), base.max_delay_sec),
            round_duration_sec=_parse_int(data.get("round_duration_sec", base.round_duration_sec), base.round_duration_sec),
            rest_duration_sec=_parse_int(data.get("rest_duration_sec", base.rest_duration_sec), base.rest_duration_sec),
            total_rounds=_parse_int(data.get("total_rounds", base.total_rounds), base.total_rounds),
            signal_kind=_parse_enum(SignalKind, data.get("signal_kind", base.signal_kind), base.signal_kind),
            voice_profile=_parse_enum(VoiceProfile, data.get("voice_profile", base.voice_profile), base.voice_profile),
        ).normalized()

    def normalized(self) -> "TrainingConfig":
        """
        Clamp out-of-range values to sane minimums instead of rejecting them.

        Non-numeric or non-finite fields fall back to the class defaults.
        """
        base = TrainingConfig()
        min_delay = max(0.1, _parse_float(self.min_delay_sec, base.min_delay_sec))
        return replace(
            self,
            min_delay_sec=min_delay,
            max_delay_sec=max(min_delay, _parse_float(self.max_delay_sec, base.max_delay_sec)),
            round_duration_sec=max(1, _parse_int(self.round_duration_sec, base.round_duration_sec)),
            rest_duration_sec=max(1, _parse_int(self.rest_duration_sec, base.rest_duration_sec)),
            total_rounds=max(0, _parse_int(self.total_rounds, base.total_rounds)),
        )

    @property
    def speech_rate(self) -> float:
        return SPEECH_RATE[self.intensity]

    @property
    def speech_pitch(self) -> float:
        return SPEECH_PITCH[self.voice_profile]

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for key, value in data.items():
            if isinstance(value, Enum):
                data[key] = value.value
        return data


@dataclass(frozen=True)
class SimpleCall:
    """A single label: one strike, one combo, or one defense."""
    label: str

    @property
    def text(self) -> str:
        return self.label


@dataclass(frozen=True)
class CounterCall:
    """A defense followed by a counter; the defense is always spoken first."""
    defense: str
    counter: str

    @property
    def text(self) -> str:
        return f"{self.defense} → {self.counter}"


Call = Union[SimpleCall, CounterCall]


@dataclass
class SessionState:
    """
    Mutable cross-round state of one TrainingSession.

    Note: only TrainingSession and its RoundClock mutate this, always under
    the session lock.
    """
    phase: Phase = Phase.IDLE
    current_round: int = 0
    phase_started_at: float = 0.0
    paused_from: Optional[Phase] = field(default=None, repr=False)
    paused_elapsed: float = field(default=0.0, repr=False)

    def enter(self, phase: Phase, now: float) -> None:
        self.phase = phase
        self.phase_started_at = now

    def enter_paused(self, now: float) -> None:
        """Remember the interrupted phase and how long it had run."""
        self.paused_from = self.phase
        self.paused_elapsed = self.elapsed_in_phase(now)
        self.enter(Phase.PAUSED, now)

    def leave_paused(self, now: float) -> None:
        """Back to the interrupted phase; its elapsed time excludes the pause."""
        self.enter(self.paused_from or Phase.ACTIVE, now - self.paused_elapsed)
        self.paused_from = None
        self.paused_elapsed = 0.0

    def elapsed_in_phase(self, now: float) -> float:
        return max(0.0, now - self.phase_started_at)

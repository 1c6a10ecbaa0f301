"""
Displays: the presentational side of a training session.

StateDisplay keeps the latest values plus a bounded event history for the
web UI to poll. ConsoleDisplay prints to the terminal for headless runs.
"""

import sys
import threading
import time
from collections import deque
from typing import Any, Callable, Dict, List, Optional, TextIO

from .ft_config import DISPLAY_FLASH_SECS, DISPLAY_HISTORY_MAX
from .ft_models import FlashKind, utcnow_iso


def format_countdown(seconds: int) -> str:
    """Seconds -> 'mm:ss' (negative values show as 00:00)."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


class Display:
    """Interface used by TrainingSession and RoundClock. Return values are ignored."""

    def set_phase_label(self, text: str) -> None:
        raise NotImplementedError

    def set_call_text(self, text: str) -> None:
        raise NotImplementedError

    def set_round_number(self, n: int) -> None:
        raise NotImplementedError

    def set_countdown(self, text: str) -> None:
        raise NotImplementedError

    def flash(self, kind: FlashKind) -> None:
        raise NotImplementedError


class StateDisplay(Display):
    """Thread-safe display state for the status API."""

    def __init__(self, history_max: int = DISPLAY_HISTORY_MAX, flash_secs: float = DISPLAY_FLASH_SECS,
                 clock: Callable[[], float] = time.monotonic) -> None:
        self._lock = threading.Lock()
        self.flash_secs = flash_secs
        self._clock = clock
        self._flash_until = 0.0
        self._state: Dict[str, Any] = {
            "phase_label": "Ready",
            "call_text": "Ready",
            "round_number": 0,
            "countdown": "00:00",
            "flash": None,
            "flash_count": 0,
        }
        self.history: deque = deque(maxlen=history_max)

    def _set(self, key: str, value: Any) -> None:
        with self._lock:
            self._state[key] = value
            self.history.append({"ts": utcnow_iso(), "field": key, "value": value})

    def set_phase_label(self, text: str) -> None:
        self._set("phase_label", text)

    def set_call_text(self, text: str) -> None:
        self._set("call_text", text)

    def set_round_number(self, n: int) -> None:
        self._set("round_number", n)

    def set_countdown(self, text: str) -> None:
        self._set("countdown", text)

    def flash(self, kind: FlashKind) -> None:
        with self._lock:
            self._state["flash_count"] += 1
            self._flash_until = self._clock() + self.flash_secs
        self._set("flash", kind.value)

    def snapshot(self) -> Dict[str, Any]:
        """Latest values; a flash reads as None once flash_secs have passed."""
        with self._lock:
            if self._state["flash"] is not None and self._clock() >= self._flash_until:
                self._state["flash"] = None
            return dict(self._state)

    def events(self, field: Optional[str] = None) -> List[Dict[str, Any]]:
        """History entries, oldest first, optionally for one field only."""
        with self._lock:
            entries = list(self.history)
        if field is not None:
            entries = [e for e in entries if e["field"] == field]
        return entries

    def values(self, field: str) -> List[Any]:
        return [e["value"] for e in self.events(field)]


class ConsoleDisplay(Display):
    """Prints session output for terminal runs."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self.stream = stream or sys.stdout
        self.round_number = 0

    def _print(self, msg: str) -> None:
        print(msg, file=self.stream, flush=True)

    def set_phase_label(self, text: str) -> None:
        self._print(f"\n== {text} ==")

    def set_call_text(self, text: str) -> None:
        if text:
            self._print(f"🥊 {text}")

    def set_round_number(self, n: int) -> None:
        self.round_number = n
        if n:
            self._print(f"Round {n}")

    def set_countdown(self, text: str) -> None:
        # only mark the interesting seconds to keep the terminal readable
        if text.endswith(":00") or text in ("00:10", "00:03", "00:02", "00:01"):
            self._print(f"   ⏱  {text}")

    def flash(self, kind: FlashKind) -> None:
        pass

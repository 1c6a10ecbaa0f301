#!/usr/bin/env python3
"""
Round Clock - Drives the lifecycle of ONE training round
Ready signal -> call loop + round countdown -> end signal -> rest countdown -> done

Owns every timer of its round and nothing across rounds; TrainingSession
decides what happens after the round reports done.
"""

import logging
import threading
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

from strike_trainer.call_generator import CallGenerator, call_generator
from strike_trainer.delay_policy import DelayPolicy
from strike_trainer.ft_audio import Announcer
from strike_trainer.ft_config import (
    COUNTER_GAP_SECS, READY_SETTLE_SECS, READY_SIGNAL_COUNT, SIGNAL_SPACING_SECS, TICK_SECS,
)
from strike_trainer.ft_display import Display, format_countdown
from strike_trainer.ft_models import CounterCall, FlashKind, TrainingConfig
from strike_trainer.ft_scheduler import Scheduler, TimerHandle
from strike_trainer.ft_vocabulary import DEFAULT_VOCABULARY, Vocabulary

logger = logging.getLogger(__name__)


class ClockPhase(str, Enum):
    IDLE = "idle"
    READY_SIGNAL = "ready_signal"
    ACTIVE = "active"
    ROUND_ENDED = "round_ended"
    RESTING = "resting"
    DONE = "done"


PHASE_LABELS = {
    ClockPhase.READY_SIGNAL: "Get Ready...",
    ClockPhase.ACTIVE: "Training",
    ClockPhase.ROUND_ENDED: "Round Ended",
    ClockPhase.RESTING: "Rest",
}

# Timer slots: at most one live timer per slot
SIGNAL, CALL, TICK, SPEECH = "signal", "call", "tick", "speech"

# Slots whose remaining delay survives a pause (the call loop is resampled instead)
RESUMABLE_SLOTS = (SIGNAL, TICK)


class RoundClock:
    """
    State machine for one round.

    Phases:
    - READY_SIGNAL: three signals SIGNAL_SPACING_SECS apart, then READY_SETTLE_SECS
    - ACTIVE: call loop and 1s countdown run as independent timers
    - ROUND_ENDED: call loop cancelled, end signal played
    - RESTING: 1s countdown over the rest period
    - DONE: on_done(clock) is invoked

    Every callback runs under ``lock`` (shared with the owning session) and
    re-checks its own handle, so a timer cancelled by pause()/cancel() never
    acts even if the scheduler already picked it up.
    """

    def __init__(
        self,
        round_number: int,
        config: TrainingConfig,
        scheduler: Scheduler,
        announcer: Announcer,
        display: Display,
        lock: Optional[threading.RLock] = None,
        on_phase: Optional[Callable[["RoundClock", ClockPhase], None]] = None,
        on_done: Optional[Callable[["RoundClock"], None]] = None,
        generator: CallGenerator = call_generator,
        delay_policy: Optional[DelayPolicy] = None,
        vocab: Vocabulary = DEFAULT_VOCABULARY,
    ):
        self.round_number = round_number
        self.config = config
        self.scheduler = scheduler
        self.announcer = announcer
        self.display = display
        self._lock = lock or threading.RLock()
        self.on_phase = on_phase
        self.on_done = on_done
        self.generator = generator
        self.delay_policy = delay_policy or DelayPolicy()
        self.vocab = vocab

        self.phase = ClockPhase.IDLE
        self.paused = False
        self.closed = False
        self.remaining = 0              # whole seconds left in the current countdown
        self.signals_emitted = 0        # ready signals only
        self.calls_emitted = 0
        self.ticks = 0

        self._timers: Dict[str, Tuple[TimerHandle, Callable[[], None]]] = {}
        self._suspended: Dict[str, Tuple[float, Callable[[], None]]] = {}

    # ---------------- Timers ----------------

    def _start_timer(self, slot: str, delay: float, fn: Callable[[], None]) -> None:
        self._cancel_slot(slot)
        handle: Optional[TimerHandle] = None

        def _fire():
            with self._lock:
                if handle.cancelled or self.paused or self.closed:
                    return
                owned = self._timers.get(slot)
                if owned and owned[0] is handle:
                    del self._timers[slot]
                fn()

        handle = self.scheduler.call_later(delay, _fire, name=slot)
        self._timers[slot] = (handle, fn)

    def _cancel_slot(self, slot: str) -> None:
        owned = self._timers.pop(slot, None)
        if owned:
            owned[0].cancel()

    def _cancel_timers(self) -> None:
        for slot in list(self._timers):
            self._cancel_slot(slot)

    @property
    def pending_slots(self):
        return sorted(slot for slot, (handle, _) in self._timers.items() if handle.pending)

    # ---------------- Collaborators ----------------

    def _signal(self) -> None:
        try:
            self.announcer.play_signal(self.config.signal_kind)
        except Exception as e:
            logger.warning(f"Signal playback failed: {e}")

    def _speak(self, text: str) -> None:
        try:
            self.announcer.speak(text, self.config.speech_rate, self.config.speech_pitch)
        except Exception as e:
            logger.warning(f"Speech failed for {text!r}: {e}")

    def _enter(self, phase: ClockPhase) -> None:
        self.phase = phase
        if phase in PHASE_LABELS:
            self.display.set_phase_label(PHASE_LABELS[phase])
        if self.on_phase:
            self.on_phase(self, phase)

    @property
    def phase_label(self) -> str:
        return PHASE_LABELS.get(self.phase, "")

    # ---------------- Lifecycle ----------------

    def run(self) -> None:
        """Start the round with the ready signal."""
        with self._lock:
            if self.phase != ClockPhase.IDLE or self.closed:
                return
            logger.info(f"Round {self.round_number}: ready signal ({self.config.signal_kind.value})")
            self._enter(ClockPhase.READY_SIGNAL)
            self.display.set_call_text("Get Ready")
            self._ready_step()

    def _ready_step(self) -> None:
        self._signal()
        self.signals_emitted += 1
        if self.signals_emitted < READY_SIGNAL_COUNT:
            self._start_timer(SIGNAL, SIGNAL_SPACING_SECS, self._ready_step)
        else:
            self._start_timer(SIGNAL, READY_SETTLE_SECS, self._begin_active)

    def _begin_active(self) -> None:
        logger.info(f"Round {self.round_number}: active for {self.config.round_duration_sec}s (mode={self.config.mode.value})")
        self._enter(ClockPhase.ACTIVE)
        self._start_countdown(self.config.round_duration_sec)
        self._schedule_next_call()

    def _start_countdown(self, seconds: int) -> None:
        self.remaining = seconds
        self.display.set_countdown(format_countdown(self.remaining))
        self._start_timer(TICK, TICK_SECS, self._tick)

    def _tick(self) -> None:
        self.remaining -= 1
        self.ticks += 1
        self.display.set_countdown(format_countdown(self.remaining))
        if self.remaining > 0:
            self._start_timer(TICK, TICK_SECS, self._tick)
        elif self.phase == ClockPhase.ACTIVE:
            self._end_round()
        else:
            self._finish()

    def _schedule_next_call(self) -> None:
        delay = self.delay_policy.next_delay_ms(self.config) / 1000.0
        self._start_timer(CALL, delay, self._emit_call)

    def _emit_call(self) -> None:
        call = self.generator.generate(self.config.mode, self.vocab)
        self.calls_emitted += 1
        logger.debug(f"Round {self.round_number} call #{self.calls_emitted}: {call.text}")
        self.display.set_call_text(call.text)

        if isinstance(call, CounterCall):
            self.display.flash(FlashKind.DANGER)
            self._speak(call.defense)
            counter = call.counter
            self._start_timer(SPEECH, COUNTER_GAP_SECS, lambda: self._speak(counter))
        else:
            self.display.flash(FlashKind.ACCENT)
            self._cancel_slot(SPEECH)
            self._speak(call.text)

        self._schedule_next_call()

    def _end_round(self) -> None:
        # call loop must be dead before the end signal goes out
        self._cancel_slot(CALL)
        self._cancel_slot(SPEECH)
        logger.info(f"Round {self.round_number}: ended after {self.calls_emitted} calls")
        self._enter(ClockPhase.ROUND_ENDED)
        self._signal()
        self.display.set_call_text("")
        self._enter(ClockPhase.RESTING)
        self._start_countdown(self.config.rest_duration_sec)

    def _finish(self) -> None:
        self._cancel_timers()
        self._enter(ClockPhase.DONE)
        logger.info(f"Round {self.round_number}: rest complete")
        if self.on_done:
            self.on_done(self)

    # ---------------- Control ----------------

    def pause(self) -> bool:
        """
        Freeze the round. Remaining countdown/signal time is kept; the pending
        call is dropped and the follow-up counter speech is silenced.
        """
        with self._lock:
            if self.paused or self.closed or self.phase not in (
                    ClockPhase.READY_SIGNAL, ClockPhase.ACTIVE, ClockPhase.RESTING):
                return False
            now = self.scheduler.now()
            self._suspended = {}
            for slot in RESUMABLE_SLOTS:
                # a slot still owned has not run its fn, even if the worker already marked it fired
                owned = self._timers.get(slot)
                if owned and not owned[0].cancelled:
                    handle, fn = owned
                    self._suspended[slot] = (max(0.0, handle.due - now), fn)
            self._cancel_timers()
            self.paused = True
            return True

    def resume(self) -> bool:
        """Continue a paused round; the call loop restarts with a freshly sampled delay."""
        with self._lock:
            if not self.paused or self.closed:
                return False
            self.paused = False
            suspended, self._suspended = self._suspended, {}
            for slot, (delay, fn) in suspended.items():
                self._start_timer(slot, delay, fn)
            if self.phase == ClockPhase.ACTIVE:
                self._schedule_next_call()
            return True

    def cancel(self) -> None:
        """Kill every timer of this round. The clock cannot be reused."""
        with self._lock:
            self.closed = True
            self._suspended = {}
            self._cancel_timers()

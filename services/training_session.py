#!/usr/bin/env python3
"""
Training Session Service - Manages a striking drill session across rounds
Start / stop / pause / resume / reset, round advancement and restart-on-change

Each instance owns its own timers (through its current RoundClock), so
several sessions can coexist without interfering.
"""

import logging
import threading
from typing import Any, Dict, Optional, Union

from services.round_clock import ClockPhase, RoundClock
from strike_trainer.call_generator import CallGenerator, call_generator
from strike_trainer.delay_policy import DelayPolicy
from strike_trainer.ft_audio import Announcer
from strike_trainer.ft_config import RESTART_DELAY_SECS
from strike_trainer.ft_display import Display
from strike_trainer.ft_models import Phase, SessionState, TrainingConfig
from strike_trainer.ft_scheduler import Scheduler, TimerHandle
from strike_trainer.ft_vocabulary import DEFAULT_VOCABULARY, Vocabulary

logger = logging.getLogger(__name__)

# Phases in which pause() is accepted
PAUSABLE = (Phase.READY_SIGNAL, Phase.ACTIVE, Phase.RESTING)


class TrainingSession:
    """
    Cross-round controller.

    Features:
    - Runs RoundClock instances back to back until total_rounds (0 = unlimited)
    - Takes a config snapshot per round; edits apply from the next round
    - Changing mode or intensity while running (not paused) restarts from round 1

    All operations return result dicts ({'success': bool, ...}); invalid
    transitions are reported, never raised.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        announcer: Announcer,
        display: Display,
        config: Optional[TrainingConfig] = None,
        vocab: Vocabulary = DEFAULT_VOCABULARY,
        generator: CallGenerator = call_generator,
        delay_policy: Optional[DelayPolicy] = None,
    ):
        self.vocab = vocab.validate()
        self.scheduler = scheduler
        self.announcer = announcer
        self.display = display
        self.generator = generator
        self.delay_policy = delay_policy or DelayPolicy()
        self.config = (config or TrainingConfig.defaults()).normalized()

        self.state = SessionState(phase_started_at=scheduler.now())
        self.running = False
        self.paused = False
        self.clock: Optional[RoundClock] = None
        self.restart_count = 0
        self._restart_timer: Optional[TimerHandle] = None
        self._lock = threading.RLock()

    # ---------------- Control surface ----------------

    def start(self, config: Optional[TrainingConfig] = None) -> Dict[str, Any]:
        """Start from round 1. No-op if already running."""
        with self._lock:
            if self.running:
                return {'success': False, 'error': 'Session already running'}
            if config is not None:
                self.config = config.normalized()
            self._cancel_restart()

            self.running = True
            self.paused = False
            self.state.current_round = 0
            self._enter(Phase.STARTING)
            self.display.set_round_number(0)
            self.display.set_phase_label("Starting")
            logger.info(f"🎬 Session start: {self._describe(self.config)}")

            self._run_next_round()
            return {
                'success': True,
                'message': 'Training started',
                'current_round': self.state.current_round,
            }

    def stop(self) -> Dict[str, Any]:
        """Cancel everything and clear the display. Safe to call repeatedly."""
        with self._lock:
            was_running = self.running
            self._cancel_all()
            self.running = False
            self.paused = False
            self.state.paused_from = None
            self._enter(Phase.STOPPED)
            self.display.set_phase_label("Stopped")
            self.display.set_call_text("")
            self.display.set_round_number(0)
            self.display.set_countdown("00:00")
            if was_running:
                logger.info(f"🛑 Session stopped in round {self.state.current_round}")
            return {'success': True, 'message': 'Training stopped'}

    def pause(self) -> Dict[str, Any]:
        with self._lock:
            if not self.running or self.paused or self.clock is None:
                return {'success': False, 'error': 'Session is not running'}
            if self.state.phase not in PAUSABLE or not self.clock.pause():
                return {'success': False, 'error': f'Cannot pause during {self.state.phase.value}'}
            self.paused = True
            self.state.enter_paused(self.scheduler.now())
            self._cancel_speech()
            self.display.set_phase_label("Paused")
            logger.info(f"⏸  Paused in round {self.state.current_round} ({self.clock.remaining}s left)")
            return {'success': True, 'message': 'Training paused'}

    def resume(self) -> Dict[str, Any]:
        with self._lock:
            if not self.running or not self.paused or self.clock is None:
                return {'success': False, 'error': 'Session is not paused'}
            self.paused = False
            self.state.leave_paused(self.scheduler.now())
            self.display.set_phase_label(self.clock.phase_label)
            self.clock.resume()
            logger.info(f"▶  Resumed round {self.state.current_round}")
            return {'success': True, 'message': 'Training resumed'}

    def reset(self) -> Dict[str, Any]:
        """stop() plus default config and a cleared display."""
        with self._lock:
            self.stop()
            self.config = TrainingConfig.defaults()
            self.state = SessionState(phase_started_at=self.scheduler.now())
            self.display.set_phase_label("Ready")
            self.display.set_call_text("Ready")
            self.display.set_countdown("00:00")
            self.display.set_round_number(0)
            logger.info("Session reset to defaults")
            return {'success': True, 'message': 'Training reset', 'config': self.config.to_dict()}

    def update_config(self, changes: Union[TrainingConfig, Dict[str, Any]]) -> Dict[str, Any]:
        """
        Replace the session config.

        Changing mode or intensity while a round is running and not paused
        stops the session and starts it again RESTART_DELAY_SECS later.
        Other edits (or edits while paused) apply from the next round.
        """
        with self._lock:
            old = self.config
            if isinstance(changes, TrainingConfig):
                new = changes.normalized()
            else:
                new = TrainingConfig.from_dict(changes, base=old)
            self.config = new

            restart = (
                self.running and not self.paused
                and (new.mode != old.mode or new.intensity != old.intensity)
            )
            if restart:
                logger.info(f"🔁 Mode/intensity changed ({old.mode.value}/{old.intensity.value} → "
                            f"{new.mode.value}/{new.intensity.value}) - restarting session")
                self.stop()
                self.restart_count += 1
                self._schedule_restart()

            return {'success': True, 'restarted': restart, 'config': new.to_dict()}

    # ---------------- Round advancement ----------------

    def _run_next_round(self) -> None:
        self.state.current_round += 1
        self.display.set_round_number(self.state.current_round)
        self.clock = RoundClock(
            round_number=self.state.current_round,
            config=self.config,
            scheduler=self.scheduler,
            announcer=self.announcer,
            display=self.display,
            lock=self._lock,
            on_phase=self._on_clock_phase,
            on_done=self._on_round_done,
            generator=self.generator,
            delay_policy=self.delay_policy,
            vocab=self.vocab,
        )
        self.clock.run()

    def _on_clock_phase(self, clock: RoundClock, phase: ClockPhase) -> None:
        if clock is not self.clock or phase in (ClockPhase.IDLE, ClockPhase.DONE):
            return
        self._enter(Phase(phase.value))

    def _on_round_done(self, clock: RoundClock) -> None:
        if clock is not self.clock or not self.running:
            return
        total = clock.config.total_rounds
        if total > 0 and self.state.current_round >= total:
            self._finish()
        else:
            self._run_next_round()

    def _finish(self) -> None:
        self._cancel_all()
        self.running = False
        self.paused = False
        self._enter(Phase.FINISHED)
        self.display.set_phase_label("Finished")
        self.display.set_call_text("Session Complete")
        self.display.set_countdown("00:00")
        logger.info(f"🎉 Session finished after {self.state.current_round} rounds")

    # ---------------- Helpers ----------------

    def _enter(self, phase: Phase) -> None:
        self.state.enter(phase, self.scheduler.now())

    def _schedule_restart(self) -> None:
        handle: Optional[TimerHandle] = None

        def _fire():
            with self._lock:
                if handle.cancelled or self._restart_timer is not handle:
                    return
                self._restart_timer = None
                self.start()

        handle = self.scheduler.call_later(RESTART_DELAY_SECS, _fire, name="restart")
        self._restart_timer = handle

    def _cancel_restart(self) -> None:
        if self._restart_timer is not None:
            self._restart_timer.cancel()
            self._restart_timer = None

    def _cancel_speech(self) -> None:
        try:
            self.announcer.cancel()
        except Exception as e:
            logger.warning(f"Error cancelling speech: {e}")

    def _cancel_all(self) -> None:
        self._cancel_restart()
        if self.clock is not None:
            self.clock.cancel()
        self._cancel_speech()

    @staticmethod
    def _describe(config: TrainingConfig) -> str:
        rounds = config.total_rounds or "unlimited"
        return (f"mode={config.mode.value}, intensity={config.intensity.value}, "
                f"{rounds} x {config.round_duration_sec}s rounds / {config.rest_duration_sec}s rest")

    # ---------------- Status ----------------

    def get_current_state(self) -> Dict[str, Any]:
        """
        Current session state for UI updates.

        Returns:
            {
                'phase': str,
                'running': bool,
                'paused': bool,
                'current_round': int,
                'total_rounds': int,       # 0 = unlimited
                'elapsed_in_phase': float,
                'remaining_sec': int,
                'restart_pending': bool,
                'config': dict,
                'display': dict            # only for displays with snapshot()
            }
        """
        with self._lock:
            now = self.scheduler.now()
            round_config = self.clock.config if self.clock and self.running else self.config
            state = {
                'phase': self.state.phase.value,
                'running': self.running,
                'paused': self.paused,
                'current_round': self.state.current_round,
                'total_rounds': round_config.total_rounds,
                'elapsed_in_phase': round(self.state.elapsed_in_phase(now), 2),
                'remaining_sec': self.clock.remaining if self.clock and self.running else 0,
                'restart_pending': self._restart_timer is not None,
                'config': self.config.to_dict(),
            }
            snapshot = getattr(self.display, 'snapshot', None)
            if callable(snapshot):
                state['display'] = snapshot()
            return state

"""
Shared fixtures: a virtual clock and recording collaborators.

The recording announcer and display append to one shared event log so tests
can assert on the relative order of audio and display side effects.
"""

import random

import pytest

from services.training_session import TrainingSession
from strike_trainer.call_generator import CallGenerator
from strike_trainer.delay_policy import DelayPolicy
from strike_trainer.ft_audio import Announcer
from strike_trainer.ft_display import StateDisplay
from strike_trainer.ft_models import TrainingConfig
from strike_trainer.ft_scheduler import VirtualScheduler


class RecordingAnnouncer(Announcer):
    def __init__(self, log=None, fail=False):
        self.log = log if log is not None else []
        self.fail = fail
        self.on_signal = None
        self.signals = []
        self.spoken = []
        self.cancels = 0

    def play_signal(self, kind):
        self.signals.append(kind)
        self.log.append(("signal", kind.value))
        if self.on_signal:
            self.on_signal()
        if self.fail:
            raise RuntimeError("no audio device")

    def speak(self, text, rate_hint=1.0, pitch_hint=1.0):
        self.spoken.append((text, rate_hint, pitch_hint))
        self.log.append(("speak", text))
        if self.fail:
            raise RuntimeError("no speech engine")

    def cancel(self):
        self.cancels += 1
        self.log.append(("cancel", None))


class RecordingDisplay(StateDisplay):
    def __init__(self, log=None):
        super().__init__(history_max=10000)
        self.log = log if log is not None else []

    def _set(self, key, value):
        super()._set(key, value)
        self.log.append(("display", key, value))


@pytest.fixture
def event_log():
    return []


@pytest.fixture
def scheduler():
    return VirtualScheduler()


@pytest.fixture
def announcer(event_log):
    return RecordingAnnouncer(event_log)


@pytest.fixture
def display(event_log):
    return RecordingDisplay(event_log)


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def make_session(scheduler, announcer, display, rng):
    def _make(**config):
        return TrainingSession(
            scheduler=scheduler,
            announcer=announcer,
            display=display,
            config=TrainingConfig(**config),
            generator=CallGenerator(rng),
            delay_policy=DelayPolicy(rng),
        )
    return _make

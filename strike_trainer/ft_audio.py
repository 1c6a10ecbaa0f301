"""
Announcers: the audio side of a training session.

- Signals (ding / gong / buzzer) play MP3 clips with `mpg123`; when a clip is
  missing a plain tone is generated with `speaker-test` instead
- Calls are spoken with `espeak` (sudo apt-get install mpg123 espeak)

Everything is fire-and-forget: the timer thread never waits on audio, and a
missing binary or a failed process never propagates to the caller.
"""

import logging
import os
import shutil
import subprocess
import threading
from dataclasses import dataclass
from typing import Optional

from .ft_config import AUDIO_DIR, AUDIO_VOLUME_PERCENT, ENABLE_AUDIO, SPEECH_COMMAND
from .ft_models import SignalKind

logger = logging.getLogger(__name__)

# Fallback tones: (frequency Hz, speaker-test waveform)
SIGNAL_TONES = {
    SignalKind.DING: (880, "sine"),
    SignalKind.GONG: (220, "sine"),
    SignalKind.BUZZER: (1200, "square"),
}

# espeak defaults: 175 words/minute, pitch 50 on a 0-99 scale
ESPEAK_BASE_WPM = 175
ESPEAK_BASE_PITCH = 50


@dataclass
class AudioSettings:
    audio_dir: str = AUDIO_DIR
    volume_percent: int = AUDIO_VOLUME_PERCENT   # 0-100
    speech_command: str = SPEECH_COMMAND


class Announcer:
    """
    Interface used by RoundClock.

    Implementations must never raise to the caller and must cancel any
    current utterance before speaking a new one.
    """

    def play_signal(self, kind: SignalKind) -> None:
        raise NotImplementedError

    def speak(self, text: str, rate_hint: float = 1.0, pitch_hint: float = 1.0) -> None:
        raise NotImplementedError

    def cancel(self) -> None:
        """Silence any in-flight utterance."""
        raise NotImplementedError


class SilentAnnouncer(Announcer):
    """No-op announcer for machines without audio; sessions run without sound."""

    def play_signal(self, kind: SignalKind) -> None:
        logger.debug(f"(silent) signal {kind.value}")

    def speak(self, text: str, rate_hint: float = 1.0, pitch_hint: float = 1.0) -> None:
        logger.debug(f"(silent) speak {text!r}")

    def cancel(self) -> None:
        pass


class AudioAnnouncer(Announcer):
    """Plays signals through mpg123 and speaks through espeak."""

    def __init__(self, settings: Optional[AudioSettings] = None):
        self.settings = settings or AudioSettings()
        self.speech_lock = threading.Lock()
        self.current_speech: Optional[subprocess.Popen] = None

    def _clip_path(self, kind: SignalKind) -> Optional[str]:
        """<audio_dir>/<kind>.mp3, or None when the clip is not installed."""
        path = os.path.join(self.settings.audio_dir, f"{kind.value}.mp3")
        return path if os.path.exists(path) else None

    def _volume_to_mpg123_scale(self, percent: int) -> int:
        """Convert 0-100% to mpg123 -f scale (roughly 0-32768)."""
        percent = max(0, min(100, percent))
        return int(32768 * (percent / 100.0))

    def play_signal(self, kind: SignalKind) -> None:
        path = self._clip_path(kind)
        if path:
            cmd = ["mpg123", "-q", "-f", str(self._volume_to_mpg123_scale(self.settings.volume_percent)), path]
        else:
            freq, wave = SIGNAL_TONES[kind]
            cmd = ["speaker-test", "-t", wave, "-f", str(freq), "-l", "1", "-c", "2"]
        try:
            subprocess.Popen(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning(f"Signal {kind.value} failed: {e}")

    def speak(self, text: str, rate_hint: float = 1.0, pitch_hint: float = 1.0) -> None:
        if not text:
            return
        wpm = int(round(ESPEAK_BASE_WPM * rate_hint))
        pitch = max(0, min(99, int(round(ESPEAK_BASE_PITCH * pitch_hint))))
        cmd = [self.settings.speech_command, "-s", str(wpm), "-p", str(pitch), text]
        with self.speech_lock:
            self._terminate_current()
            try:
                self.current_speech = subprocess.Popen(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
            except (OSError, subprocess.SubprocessError) as e:
                self.current_speech = None
                logger.warning(f"Speech failed for {text!r}: {e}")

    def cancel(self) -> None:
        with self.speech_lock:
            self._terminate_current()

    def _terminate_current(self) -> None:
        proc, self.current_speech = self.current_speech, None
        if proc is None:
            return
        try:
            if proc.poll() is None:
                proc.terminate()
        except OSError as e:
            logger.warning(f"Error stopping speech: {e}")


def build_announcer(settings: Optional[AudioSettings] = None, enabled: bool = ENABLE_AUDIO) -> Announcer:
    """
    Pick the announcer for this machine.

    Falls back to SilentAnnouncer when audio is disabled or the speech
    binary is missing, so a session still runs (without sound).
    """
    settings = settings or AudioSettings()
    if not enabled:
        logger.info("Audio disabled - using silent announcer")
        return SilentAnnouncer()
    if shutil.which(settings.speech_command) is None:
        logger.warning(f"'{settings.speech_command}' not found - using silent announcer")
        return SilentAnnouncer()
    if shutil.which("mpg123") is None:
        logger.warning("mpg123 not found - signals will use generated tones")
    logger.info(f"Audio announcer initialized (dir={settings.audio_dir}, vol={settings.volume_percent}%)")
    return AudioAnnouncer(settings)

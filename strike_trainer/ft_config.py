"""
Central configuration and tunables.

If you need to change ports, audio paths, or round timing, do it here.
Prefer environment overrides where sensible.
"""

import os

# Web
HOST: str = os.getenv("STRIKE_TRAINER_HOST", "0.0.0.0")
PORT: int = int(os.getenv("STRIKE_TRAINER_PORT", "5000"))
DEBUG: bool = bool(int(os.getenv("STRIKE_TRAINER_DEBUG", "0")))

# Audio
ENABLE_AUDIO: bool = bool(int(os.getenv("STRIKE_TRAINER_ENABLE_AUDIO", "1")))
AUDIO_DIR: str = os.getenv("STRIKE_TRAINER_AUDIO_DIR", "/opt/strike-trainer/audio")
AUDIO_VOLUME_PERCENT: int = max(0, min(100, int(os.getenv("STRIKE_TRAINER_AUDIO_VOLUME", "80"))))
VOICE_PROFILE: str = os.getenv("STRIKE_TRAINER_VOICE_PROFILE", "standard")  # or "deep"
SPEECH_COMMAND: str = os.getenv("STRIKE_TRAINER_SPEECH_COMMAND", "espeak")

# Round timing (seconds unless noted)
READY_SIGNAL_COUNT: int = 3
SIGNAL_SPACING_SECS: float = float(os.getenv("STRIKE_TRAINER_SIGNAL_SPACING", "0.7"))
READY_SETTLE_SECS: float = float(os.getenv("STRIKE_TRAINER_READY_SETTLE", "0.4"))
COUNTER_GAP_SECS: float = float(os.getenv("STRIKE_TRAINER_COUNTER_GAP", "0.65"))
INTENSITY_MODE_DELAY_MS: float = float(os.getenv("STRIKE_TRAINER_INTENSITY_DELAY_MS", "450"))
RESTART_DELAY_SECS: float = float(os.getenv("STRIKE_TRAINER_RESTART_DELAY", "0.12"))
TICK_SECS: float = 1.0

# Display
DISPLAY_FLASH_SECS: float = 0.22
DISPLAY_HISTORY_MAX: int = int(os.getenv("STRIKE_TRAINER_DISPLAY_HISTORY", "200"))

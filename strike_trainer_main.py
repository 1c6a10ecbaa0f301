#!/usr/bin/env python3
"""
Strike Trainer – Main Application Launcher
-------------------------------------------------
Runs one of:
  1) The Flask web UI + REST control API (default)
  2) --headless: a session straight in the terminal
  3) --simulate: a whole session on a virtual clock, printed instantly (dry run)

Key characteristics:
- Clean signal handling (Ctrl+C and SIGTERM)
- Graceful shutdown: stop the session, silence audio, stop the timer thread
- CLI flags with environment fallbacks

CLI:
  python strike_trainer_main.py --host 0.0.0.0 --port 5000 --debug 0
  python strike_trainer_main.py --headless --mode counter_simple --rounds 3
ENV:
  STRIKE_TRAINER_HOST, STRIKE_TRAINER_PORT, STRIKE_TRAINER_DEBUG
"""

import argparse
import logging
import signal
import sys
import time

from services.training_session import TrainingSession
from strike_trainer.ft_audio import SilentAnnouncer, build_announcer
from strike_trainer.ft_config import DEBUG, HOST, PORT
from strike_trainer.ft_display import ConsoleDisplay
from strike_trainer.ft_models import Intensity, Mode, SignalKind, TrainingConfig, VoiceProfile
from strike_trainer.ft_scheduler import ThreadedScheduler, VirtualScheduler
from strike_trainer.ft_version import VERSION

logger = logging.getLogger("strike_trainer")

# Global shutdown flag polled by the headless loop
_SHUTDOWN_REQUESTED = False


def _signal_handler(signum, frame):
    """Basic signal handler: flip a flag so long-running loops can exit promptly."""
    del signum, frame
    global _SHUTDOWN_REQUESTED
    _SHUTDOWN_REQUESTED = True


def _parse_args(argv=None) -> argparse.Namespace:
    """Parse CLI args with environment-based defaults."""
    defaults = TrainingConfig.defaults()
    parser = argparse.ArgumentParser(description="Strike Trainer - interval striking coach")
    parser.add_argument("--host", default=HOST, help="Web host (default env STRIKE_TRAINER_HOST)")
    parser.add_argument("--port", type=int, default=PORT, help="Web port (default env STRIKE_TRAINER_PORT)")
    parser.add_argument("--debug", type=lambda v: bool(int(v)), default=DEBUG, help="Flask debug (0/1)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log individual calls")

    run = parser.add_mutually_exclusive_group()
    run.add_argument("--headless", action="store_true", help="Run a session in the terminal instead of the web UI")
    run.add_argument("--simulate", action="store_true", help="Dry run on a virtual clock, no audio")

    session = parser.add_argument_group("session (headless/simulate)")
    session.add_argument("--mode", choices=[m.value for m in Mode], default=defaults.mode.value)
    session.add_argument("--intensity", choices=[i.value for i in Intensity], default=defaults.intensity.value)
    session.add_argument("--min-delay", type=float, default=defaults.min_delay_sec)
    session.add_argument("--max-delay", type=float, default=defaults.max_delay_sec)
    session.add_argument("--round-secs", type=int, default=defaults.round_duration_sec)
    session.add_argument("--rest-secs", type=int, default=defaults.rest_duration_sec)
    session.add_argument("--rounds", type=int, default=defaults.total_rounds, help="0 = unlimited")
    session.add_argument("--signal", choices=[s.value for s in SignalKind], default=defaults.signal_kind.value)
    session.add_argument("--voice", choices=[v.value for v in VoiceProfile], default=defaults.voice_profile.value)

    args = parser.parse_args(argv)
    if args.simulate and args.rounds <= 0:
        parser.error("--simulate needs a finite --rounds")
    return args


def config_from_args(args: argparse.Namespace) -> TrainingConfig:
    return TrainingConfig.from_dict({
        "mode": args.mode,
        "intensity": args.intensity,
        "min_delay_sec": args.min_delay,
        "max_delay_sec": args.max_delay,
        "round_duration_sec": args.round_secs,
        "rest_duration_sec": args.rest_secs,
        "total_rounds": args.rounds,
        "signal_kind": args.signal,
        "voice_profile": args.voice,
    })


def run_simulation(config: TrainingConfig, display=None) -> TrainingSession:
    """Play a whole session on the virtual clock and return the finished session."""
    scheduler = VirtualScheduler()
    session = TrainingSession(scheduler, SilentAnnouncer(), display or ConsoleDisplay(), config=config)
    session.start()
    scheduler.run_until_idle()
    return session


def run_headless(config: TrainingConfig) -> int:
    scheduler = ThreadedScheduler()
    session = TrainingSession(scheduler, build_announcer(), ConsoleDisplay(), config=config)
    try:
        session.start()
        while session.running or session.get_current_state()['restart_pending']:
            if _SHUTDOWN_REQUESTED:
                break
            time.sleep(0.25)
    except KeyboardInterrupt:
        pass
    finally:
        session.stop()
        scheduler.shutdown()
    return 0


def run_web(args: argparse.Namespace) -> int:
    from strike_trainer_web import create_app

    scheduler = ThreadedScheduler()
    app = create_app(scheduler=scheduler)
    session = app.extensions['training_session']
    socketio = app.extensions['socketio']

    print(f"=== Strike Trainer {VERSION} – Interval Striking Coach ===")
    print(f"Web: http://{args.host}:{args.port}  (debug={int(args.debug)})")
    print("Press Ctrl+C to stop")
    try:
        # Important: use_reloader=False prevents a second process (and a second timer thread)
        socketio.run(app, host=args.host, port=args.port, debug=args.debug,
                     use_reloader=False, allow_unsafe_werkzeug=True)
    except KeyboardInterrupt:
        pass
    finally:
        logger.info("Shutting down Strike Trainer…")
        session.stop()
        scheduler.shutdown()
        print("System shutdown complete.")
    return 0


def main(argv=None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
    )

    if args.simulate:
        session = run_simulation(config_from_args(args))
        return 0 if session.state.phase.value == "finished" else 1
    if args.headless:
        # Signals: SIGINT (Ctrl+C) and SIGTERM (containers)
        signal.signal(signal.SIGINT, _signal_handler)
        try:
            signal.signal(signal.SIGTERM, _signal_handler)
        except (ValueError, OSError):
            # Windows may not support SIGTERM; ignore if unsupported.
            pass
        return run_headless(config_from_args(args))
    return run_web(args)


if __name__ == "__main__":
    sys.exit(main())

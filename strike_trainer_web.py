#!/usr/bin/env python3
"""
Strike Trainer – Flask Web Interface
------------------------------------
Responsibilities:
- Builds the Flask app and registers the training blueprint
- Owns the TrainingSession the routes drive (app.extensions['training_session'])
- Owns the SocketIO instance that pushes display updates (app.extensions['socketio'])
- /health for service checks

Notes:
- This file does NOT parse CLI args; use strike_trainer_main.py.
"""

import os
from datetime import datetime, timezone
from typing import Optional

from flask import Flask, jsonify
from flask_socketio import SocketIO

from routes.training_bp import EXTENSION_KEY, training_bp
from routes.training_socket import SocketIODisplay, TrainingNamespace
from services.training_session import TrainingSession
from strike_trainer.ft_audio import Announcer, build_announcer
from strike_trainer.ft_display import Display
from strike_trainer.ft_scheduler import Scheduler, ThreadedScheduler
from strike_trainer.ft_version import VERSION


def create_app(
    session: Optional[TrainingSession] = None,
    scheduler: Optional[Scheduler] = None,
    announcer: Optional[Announcer] = None,
    display: Optional[Display] = None,
) -> Flask:
    """
    Build the web app.

    Pass a ready-made ``session`` (tests), or let the app build one from the
    given collaborators, defaulting to a real-time scheduler, the machine's
    announcer and a SocketIODisplay the browser listens to.
    """
    app = Flask(__name__)
    # threading mode: the timer thread emits directly, no eventlet/gevent
    socketio = SocketIO(app, async_mode="threading")

    if session is None:
        session = TrainingSession(
            scheduler=scheduler or ThreadedScheduler(),
            announcer=announcer or build_announcer(),
            display=display or SocketIODisplay(socketio),
        )
    if isinstance(session.display, SocketIODisplay) and session.display.socketio is None:
        session.display.attach(socketio)

    app.extensions[EXTENSION_KEY] = session
    app.config['STARTED_AT'] = datetime.now(timezone.utc).isoformat(timespec="seconds")
    app.register_blueprint(training_bp)
    socketio.on_namespace(TrainingNamespace(session))

    @app.get("/health")
    def health():
        """Health check endpoint - shows version and service status"""
        return jsonify({
            'service': 'strike-trainer',
            'version': VERSION,
            'pid': os.getpid(),
            'started_at': app.config['STARTED_AT'],
            'session_phase': session.state.phase.value,
            'status': 'healthy',
        })

    return app

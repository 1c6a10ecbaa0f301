"""
Training live updates over Flask-SocketIO

Pushes every display change to connected browsers and accepts session
control from the socket as well as from the REST routes.
"""

import logging
from typing import Any, Dict, Optional

from flask_socketio import Namespace, SocketIO, emit

from services.training_session import TrainingSession
from strike_trainer.ft_config import DISPLAY_FLASH_SECS, DISPLAY_HISTORY_MAX
from strike_trainer.ft_display import StateDisplay

logger = logging.getLogger(__name__)

NAMESPACE = '/training'

CONTROL_ACTIONS = ('start', 'stop', 'pause', 'resume', 'reset')


class SocketIODisplay(StateDisplay):
    """StateDisplay that also emits each change as a 'display_update' event."""

    def __init__(self, socketio: Optional[SocketIO] = None, namespace: str = NAMESPACE,
                 history_max: int = DISPLAY_HISTORY_MAX):
        super().__init__(history_max=history_max)
        self.socketio = socketio
        self.namespace = namespace

    def attach(self, socketio: SocketIO) -> None:
        self.socketio = socketio

    def _set(self, key: str, value: Any) -> None:
        super()._set(key, value)
        if self.socketio is None:
            return
        payload = {'field': key, 'value': value, 'state': self.snapshot()}
        if key == 'flash':
            payload['duration_sec'] = DISPLAY_FLASH_SECS
        try:
            # Called from the timer thread; socketio.emit broadcasts outside a request context
            self.socketio.emit('display_update', payload, namespace=self.namespace)
        except Exception as e:
            logger.warning(f"Display push failed for {key}: {e}")


class TrainingNamespace(Namespace):
    """Socket events for one TrainingSession."""

    def __init__(self, session: TrainingSession, namespace: str = NAMESPACE):
        super().__init__(namespace)
        self.session = session

    def on_connect(self, auth=None):
        logger.debug("Training socket client connected")
        emit('session_state', self.session.get_current_state())

    def on_disconnect(self, reason=None):
        logger.debug("Training socket client disconnected")

    def on_request_state(self, data=None):
        emit('session_state', self.session.get_current_state())

    def on_control(self, data: Optional[Dict[str, Any]] = None):
        """{'action': 'start'|'stop'|'pause'|'resume'|'reset'} -> 'control_result'"""
        action = (data or {}).get('action') if isinstance(data, dict) else None
        if action not in CONTROL_ACTIONS:
            emit('control_result', {'success': False, 'error': f'Unknown action: {action}'})
            return
        result = getattr(self.session, action)()
        emit('control_result', dict(result, action=action))

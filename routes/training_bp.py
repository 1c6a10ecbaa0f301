#!/usr/bin/env python3
"""
Training Blueprint - Flask routes for the striking drill session
Control surface (start/stop/pause/resume/reset), config surface and status
"""

from flask import Blueprint, current_app, jsonify, request

# Create blueprint
training_bp = Blueprint('training', __name__)

EXTENSION_KEY = 'training_session'


def _session():
    return current_app.extensions[EXTENSION_KEY]


def _json_body():
    """Request JSON as a dict; malformed or missing bodies count as empty."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _respond(result):
    """200 on success, 409 when the session rejected the transition."""
    return jsonify(result), (200 if result.get('success') else 409)


# ==================== CONTROL ROUTES ====================

@training_bp.route('/api/training/start', methods=['POST'])
def api_start():
    """Start training; an optional JSON body updates the config first"""
    session = _session()
    data = _json_body()
    if data:
        if session.running:
            return _respond({'success': False, 'error': 'Session already running'})
        session.update_config(data)
    return _respond(session.start())


@training_bp.route('/api/training/stop', methods=['POST'])
def api_stop():
    return _respond(_session().stop())


@training_bp.route('/api/training/pause', methods=['POST'])
def api_pause():
    return _respond(_session().pause())


@training_bp.route('/api/training/resume', methods=['POST'])
def api_resume():
    return _respond(_session().resume())


@training_bp.route('/api/training/reset', methods=['POST'])
def api_reset():
    """Stop and restore default settings"""
    return _respond(_session().reset())


# ==================== CONFIG / STATUS ROUTES ====================

@training_bp.route('/api/training/config', methods=['GET'])
def api_get_config():
    return jsonify(_session().config.to_dict())


@training_bp.route('/api/training/config', methods=['POST'])
def api_update_config():
    """Partial config update (mode/intensity changes restart a running session)"""
    return _respond(_session().update_config(_json_body()))


@training_bp.route('/api/training/status')
def api_status():
    """Get current session status"""
    return jsonify(_session().get_current_state())


@training_bp.route('/api/training/vocabulary')
def api_vocabulary():
    return jsonify(_session().vocab.to_dict())

"""
REST API tests through Flask's test client, on the virtual clock.
"""

import pytest

from conftest import RecordingAnnouncer, RecordingDisplay
from services.training_session import TrainingSession
from strike_trainer.ft_scheduler import VirtualScheduler
from strike_trainer.ft_version import VERSION
from strike_trainer_web import create_app


@pytest.fixture
def clock():
    return VirtualScheduler()


@pytest.fixture
def session(clock):
    return TrainingSession(clock, RecordingAnnouncer(), RecordingDisplay())


@pytest.fixture
def client(session):
    app = create_app(session=session)
    app.config['TESTING'] = True
    return app.test_client()


def test_health(client):
    response = client.get('/health')
    assert response.status_code == 200
    data = response.get_json()
    assert data['status'] == 'healthy'
    assert data['service'] == 'strike-trainer'
    assert data['version'] == VERSION
    assert data['session_phase'] == 'idle'


def test_start_then_start_again_conflicts(client, clock):
    response = client.post('/api/training/start')
    assert response.status_code == 200
    assert response.get_json()['success'] is True

    clock.advance(0.5)
    response = client.post('/api/training/start')
    assert response.status_code == 409
    assert response.get_json()['error'] == 'Session already running'


def test_start_with_config_body(client, session):
    response = client.post('/api/training/start', json={
        'mode': 'counter_combo', 'intensity': 'fast', 'total_rounds': 5, 'voice_profile': 'deep',
    })
    assert response.status_code == 200
    assert session.config.total_rounds == 5
    assert session.clock.config.mode.value == 'counter_combo'
    assert session.config.voice_profile.value == 'deep'


def test_start_with_body_while_running_leaves_config_alone(client, session):
    client.post('/api/training/start')
    response = client.post('/api/training/start', json={'mode': 'defense'})
    assert response.status_code == 409
    assert session.config.mode.value == 'single'


def test_malformed_json_is_treated_as_empty(client, session):
    response = client.post('/api/training/start', data='{not json', content_type='application/json')
    assert response.status_code == 200
    assert session.running


def test_pause_resume_stop_flow(client, clock):
    assert client.post('/api/training/pause').status_code == 409

    client.post('/api/training/start')
    clock.advance(2.5)
    assert client.post('/api/training/pause').status_code == 200
    status = client.get('/api/training/status').get_json()
    assert status['phase'] == 'paused'
    assert status['paused'] is True
    assert status['display']['phase_label'] == 'Paused'

    assert client.post('/api/training/resume').status_code == 200
    assert client.get('/api/training/status').get_json()['phase'] == 'active'

    assert client.post('/api/training/stop').status_code == 200
    assert client.post('/api/training/stop').status_code == 200
    status = client.get('/api/training/status').get_json()
    assert status['phase'] == 'stopped'
    assert status['running'] is False
    assert clock.pending() == []


def test_config_update_reports_restart(client, clock):
    response = client.post('/api/training/config', json={'min_delay_sec': 0.5})
    assert response.get_json()['restarted'] is False
    assert response.get_json()['config']['min_delay_sec'] == 0.5

    client.post('/api/training/start')
    clock.advance(3.0)
    response = client.post('/api/training/config', json={'mode': 'combo'})
    assert response.status_code == 200
    assert response.get_json()['restarted'] is True

    clock.advance(0.2)
    status = client.get('/api/training/status').get_json()
    assert status['running'] is True
    assert status['current_round'] == 1
    assert status['config']['mode'] == 'combo'


def test_get_config_and_reset(client):
    client.post('/api/training/config', json={'round_duration_sec': 90, 'signal_kind': 'gong'})
    config = client.get('/api/training/config').get_json()
    assert config['round_duration_sec'] == 90
    assert config['signal_kind'] == 'gong'

    response = client.post('/api/training/reset')
    assert response.status_code == 200
    config = client.get('/api/training/config').get_json()
    assert config['round_duration_sec'] == 60
    assert config['signal_kind'] == 'ding'


def test_vocabulary(client):
    data = client.get('/api/training/vocabulary').get_json()
    assert data['singles']
    assert data['combos']
    assert set(data['counters']) <= set(data['defenses'])


def test_config_with_huge_numbers_is_clamped(client):
    response = client.post('/api/training/config', data='{"total_rounds": 1e400, "round_duration_sec": 30}',
                           content_type='application/json')
    assert response.status_code == 200
    config = response.get_json()['config']
    assert config['total_rounds'] == 3
    assert config['round_duration_sec'] == 30

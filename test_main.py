"""
Launcher and remote-control CLI tests (no server, no audio).
"""

import json

import pytest
import requests

import strike_trainer_ctl
import strike_trainer_main
from strike_trainer.ft_display import StateDisplay
from strike_trainer.ft_models import Mode, Phase, TrainingConfig


# ==================== strike_trainer_main ====================

def test_run_simulation_finishes(capsys):
    display = StateDisplay(history_max=10000)
    config = TrainingConfig(mode=Mode.COUNTER_COMBO, round_duration_sec=5, rest_duration_sec=2, total_rounds=2)
    session = strike_trainer_main.run_simulation(config, display=display)

    assert session.state.phase == Phase.FINISHED
    assert session.state.current_round == 2
    assert display.snapshot()["call_text"] == "Session Complete"
    assert "→" in "".join(display.values("call_text"))


def test_config_from_args():
    args = strike_trainer_main._parse_args([
        "--mode", "defense", "--intensity", "slow", "--rounds", "0", "--voice", "deep", "--signal", "buzzer",
    ])
    config = strike_trainer_main.config_from_args(args)
    assert config.mode == Mode.DEFENSE
    assert config.total_rounds == 0
    assert config.voice_profile.value == "deep"
    assert config.signal_kind.value == "buzzer"
    assert config.speech_rate == 0.95


def test_simulate_needs_finite_rounds():
    with pytest.raises(SystemExit):
        strike_trainer_main._parse_args(["--simulate", "--rounds", "0"])


def test_main_simulate_prints_session(capsys):
    code = strike_trainer_main.main(["--simulate", "--rounds", "1", "--round-secs", "3", "--rest-secs", "1"])
    assert code == 0
    out = capsys.readouterr().out
    assert "Round 1" in out
    assert "Session Complete" in out


# ==================== strike_trainer_ctl ====================

def test_parse_settings():
    assert strike_trainer_ctl.parse_settings(["mode=combo", " total_rounds = 5"]) == \
        {"mode": "combo", "total_rounds": "5"}
    with pytest.raises(ValueError):
        strike_trainer_ctl.parse_settings(["mode"])
    with pytest.raises(ValueError):
        strike_trainer_ctl.parse_settings(["=combo"])


class FakeResponse:
    def __init__(self, payload=None, status_code=200, text=""):
        self.payload = payload
        self.status_code = status_code
        self.text = text

    def json(self):
        if self.payload is None:
            raise ValueError("No JSON object could be decoded")
        return self.payload


class FakeHttp:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append(("GET", url, kwargs))
        return self.response

    def post(self, url, **kwargs):
        self.calls.append(("POST", url, kwargs))
        return self.response


def test_send_posts_settings():
    http = FakeHttp(FakeResponse({"success": True}))
    result = strike_trainer_ctl.send("config", {"mode": "combo"}, base_url="http://trainer:5000/", http=http)
    assert result == {"success": True}
    method, url, kwargs = http.calls[0]
    assert (method, url) == ("POST", "http://trainer:5000/api/training/config")
    assert kwargs["json"] == {"mode": "combo"}
    assert kwargs["timeout"] == strike_trainer_ctl.TIMEOUT_SECS


def test_send_status_uses_get():
    http = FakeHttp(FakeResponse({"phase": "idle"}))
    strike_trainer_ctl.send("status", base_url="http://trainer:5000", http=http)
    assert http.calls[0][:2] == ("GET", "http://trainer:5000/api/training/status")


def test_send_non_json_response():
    http = FakeHttp(FakeResponse(None, status_code=502, text="Bad Gateway"))
    result = strike_trainer_ctl.send("stop", http=http)
    assert result["success"] is False
    assert "HTTP 502" in result["error"]


def test_ctl_main_exit_codes(monkeypatch, capsys):
    monkeypatch.setattr(strike_trainer_ctl, "send", lambda action, settings, base_url: {"success": True})
    assert strike_trainer_ctl.main(["start", "mode=combo"]) == 0
    assert json.loads(capsys.readouterr().out) == {"success": True}

    monkeypatch.setattr(strike_trainer_ctl, "send", lambda action, settings, base_url: {"success": False})
    assert strike_trainer_ctl.main(["pause"]) == 1
    assert strike_trainer_ctl.main(["status"]) == 0


def test_ctl_main_unreachable_service(monkeypatch, capsys):
    def refuse(action, settings, base_url):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(strike_trainer_ctl, "send", refuse)
    assert strike_trainer_ctl.main(["stop", "--url", "http://nowhere:1"]) == 1
    assert "Could not reach http://nowhere:1" in capsys.readouterr().err

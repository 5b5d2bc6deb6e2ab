import json

from tbconsole import config
from tbconsole.config import DEFAULT_BASE_URL, load_console_config, redact


CONSOLE_ENV = [
    "TICKETBOT_URL",
    "TICKETBOT_API_KEY",
    "CONSOLE_REQUEST_TIMEOUT",
    "CONSOLE_VERIFY_TLS",
    "CONSOLE_POLL_INTERVAL",
    "CONSOLE_TOAST_SECONDS",
    "CONSOLE_LOCATION_FILE",
    "CONSOLE_MAX_CONCURRENT_SYNCS",
]


def _clear_env(monkeypatch):
    for key in CONSOLE_ENV:
        monkeypatch.delenv(key, raising=False)


def test_defaults_when_env_is_empty(monkeypatch):
    _clear_env(monkeypatch)
    cfg = load_console_config()
    assert cfg.base_url == DEFAULT_BASE_URL
    assert cfg.api_key is None
    assert cfg.request_timeout == 30.0
    assert cfg.verify_tls is True
    assert cfg.poll_interval == 3.0
    assert cfg.toast_seconds == 3.5
    assert cfg.location_file is None
    assert cfg.max_concurrent_syncs == 5


def test_env_overrides(monkeypatch, tmp_path):
    _clear_env(monkeypatch)
    monkeypatch.setenv("TICKETBOT_URL", "https://ticketbot.example.com/")
    monkeypatch.setenv("TICKETBOT_API_KEY", "  tb-key  ")
    monkeypatch.setenv("CONSOLE_REQUEST_TIMEOUT", "5")
    monkeypatch.setenv("CONSOLE_VERIFY_TLS", "off")
    monkeypatch.setenv("CONSOLE_POLL_INTERVAL", "0.5")
    monkeypatch.setenv("CONSOLE_LOCATION_FILE", str(tmp_path / "location.json"))
    monkeypatch.setenv("CONSOLE_MAX_CONCURRENT_SYNCS", "8")

    cfg = load_console_config()
    assert cfg.base_url == "https://ticketbot.example.com"
    assert cfg.api_key == "tb-key"
    assert cfg.request_timeout == 5.0
    assert cfg.verify_tls is False
    assert cfg.poll_interval == 0.5
    assert cfg.location_file == str(tmp_path / "location.json")
    assert cfg.max_concurrent_syncs == 8


def test_invalid_numbers_fall_back_to_defaults(monkeypatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("CONSOLE_POLL_INTERVAL", "soon")
    monkeypatch.setenv("CONSOLE_TOAST_SECONDS", "-1")
    cfg = load_console_config()
    assert cfg.poll_interval == 3.0
    assert cfg.toast_seconds == 3.5


def test_public_snapshot_hides_api_key(monkeypatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("TICKETBOT_API_KEY", "tb-key")
    public = load_console_config().public()
    assert public["has_api_key"] is True
    assert "tb-key" not in json.dumps(public)


def test_redact_masks_nested_secrets():
    data = {
        "email": "a@example.com",
        "password": "hunter2",
        "nested": [{"pending_token": "tok", "code": ""}],
        "recovery_codes": ["a", "b"],
    }
    assert redact(data) == {
        "email": "a@example.com",
        "password": "***",
        "nested": [{"pending_token": "***", "code": ""}],
        "recovery_codes": "***",
    }
    assert data["password"] == "hunter2"


def test_dlog_is_silent_unless_debug(monkeypatch, capsys):
    monkeypatch.setattr(config, "DEBUG", False)
    config.dlog("label", {"password": "hunter2"})
    assert capsys.readouterr().out == ""

    monkeypatch.setattr(config, "DEBUG", True)
    config.dlog("login_attempt", {"email": "a@example.com", "password": "hunter2"})
    out = capsys.readouterr().out
    assert out.startswith("[console-debug] login_attempt:")
    assert "hunter2" not in out
    assert "a@example.com" in out

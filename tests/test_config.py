import logging

import pytest
import yaml

import config
from util.debug_flags import DEBUG_FLAGS, configure_logging, is_enabled, normalize_flags


@pytest.fixture
def user_cfg(monkeypatch, tmp_path):
    path = tmp_path / "checklist_sync.yaml"
    monkeypatch.setattr(config, "USER_CONFIG_PATH", path)
    for name in (
        "CHECKLIST_SYNC_TOKEN",
        "CHECKLIST_SYNC_BASE_URL",
        "CHECKLIST_SYNC_TIMEOUT",
        "CHECKLIST_SYNC_VERIFY_DELAY",
        "CHECKLIST_SYNC_DEBUG",
    ):
        monkeypatch.delenv(name, raising=False)
    return path


def test_defaults_without_config_file(user_cfg):
    settings = config.load_settings()

    assert settings.base_url == config.DEFAULT_BASE_URL
    assert settings.token == ""
    assert settings.request_timeout == 10.0
    assert settings.verify_delay == 1.0
    assert settings.debug == []


def test_settings_read_from_yaml(user_cfg):
    user_cfg.write_text(
        yaml.safe_dump(
            {
                "base_url": "https://checklist.example/api/",
                "token": "abc",
                "request_timeout": 3,
                "verify_delay": 0.5,
                "debug": ["tasks", "task_api"],
            }
        )
    )

    settings = config.load_settings()

    assert settings.base_url == "https://checklist.example/api"
    assert settings.token == "abc"
    assert settings.request_timeout == 3.0
    assert settings.verify_delay == 0.5
    assert settings.debug == ["tasks", "task_api"]


def test_environment_overrides_file(user_cfg, monkeypatch):
    user_cfg.write_text(yaml.safe_dump({"token": "file", "verify_delay": 2}))
    monkeypatch.setenv("CHECKLIST_SYNC_TOKEN", "env")
    monkeypatch.setenv("CHECKLIST_SYNC_VERIFY_DELAY", "0")
    monkeypatch.setenv("CHECKLIST_SYNC_DEBUG", "tasks, task_lookup")

    settings = config.load_settings()

    assert settings.token == "env"
    assert settings.verify_delay == 0.0
    assert settings.debug == ["tasks", "task_lookup"]


def test_bad_values_fall_back_to_defaults(user_cfg, monkeypatch):
    user_cfg.write_text("token: [unclosed")
    assert config.load_settings().token == ""

    monkeypatch.setenv("CHECKLIST_SYNC_TIMEOUT", "soon")
    monkeypatch.setenv("CHECKLIST_SYNC_VERIFY_DELAY", "-1")
    settings = config.load_settings()
    assert settings.request_timeout == config.DEFAULT_REQUEST_TIMEOUT
    assert settings.verify_delay == config.DEFAULT_VERIFY_DELAY


def test_token_and_base_url_round_trip(user_cfg):
    config.set_user_token("  secret ")
    config.set_base_url("https://other.example/api")
    assert config.get_user_token() == "secret"
    assert config.get_base_url() == "https://other.example/api"

    config.set_user_token("")
    config.set_base_url("")
    assert config.get_user_token() == ""
    assert not user_cfg.exists()


def test_normalize_flags():
    assert normalize_flags(["DEBUG_TASKS", "task_api", "tasks", "bogus"]) == ["tasks", "task_api"]
    assert normalize_flags(["all"]) == list(DEBUG_FLAGS)
    assert normalize_flags([]) == []


def test_configure_logging_enables_flagged_loggers():
    handler = logging.NullHandler()
    root = logging.getLogger("checklist_sync")
    saved = list(root.handlers)
    root.handlers = []
    try:
        enabled = configure_logging(["task_api"], handler=handler)
        assert enabled == ["task_api"]
        assert is_enabled("task_api")
        assert not is_enabled("task_persistence")
        assert not is_enabled("unknown")
        assert handler in root.handlers

        configure_logging([])
        assert not is_enabled("task_api")
    finally:
        root.handlers = saved
        root.setLevel(logging.NOTSET)

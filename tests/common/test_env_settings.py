from __future__ import annotations

import logging

import pytest

from common import settings
from common.env import env_bool, env_str
from common.logging import setup_default_logging


@pytest.mark.parametrize(
    "raw, expected",
    [("1", True), ("0", False), ("true", True), ("Off", False), ("yes", True), ("maybe", False)],
)
def test_env_bool_parses_common_spellings(monkeypatch: pytest.MonkeyPatch, raw: str, expected: bool) -> None:
    monkeypatch.setenv("MDM_TEST_FLAG", raw)
    assert env_bool("MDM_TEST_FLAG", False) is expected


def test_env_bool_default_when_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MDM_TEST_FLAG", raising=False)
    assert env_bool("MDM_TEST_FLAG", True) is True


def test_env_str_strips_and_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MDM_TEST_STR", "  /tmp/x  ")
    assert env_str("MDM_TEST_STR") == "/tmp/x"
    monkeypatch.setenv("MDM_TEST_STR", "   ")
    assert env_str("MDM_TEST_STR", "fallback") == "fallback"


def test_settings_reload_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MDM_MIDI_DEBUG", "1")
    monkeypatch.setenv("MDM_LOG_LEVEL", "debug")
    monkeypatch.setenv("MDM_DATA_DIR", "/tmp/mdm")
    try:
        settings.reload_from_env()
        s = settings.get()
        assert s.MIDI_DEBUG is True
        assert s.LOG_LEVEL == "DEBUG"
        assert s.DATA_DIR == "/tmp/mdm"
    finally:
        monkeypatch.delenv("MDM_MIDI_DEBUG")
        monkeypatch.delenv("MDM_LOG_LEVEL")
        monkeypatch.delenv("MDM_DATA_DIR")
        settings.reload_from_env()
    assert settings.get().MIDI_DEBUG is False


def test_setup_default_logging_is_noop_when_configured(monkeypatch: pytest.MonkeyPatch) -> None:
    root = logging.getLogger()
    handler = logging.NullHandler()
    root.addHandler(handler)
    calls: list[object] = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.append(kw))
    try:
        setup_default_logging("DEBUG")
    finally:
        root.removeHandler(handler)
    assert calls == []

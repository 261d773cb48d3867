from __future__ import annotations

import logging

import pytest

from api.midi import NullMidiService, setup_midi
from engine.io import service as service_mod
from engine.io.config_store import ConfigReadError
from engine.io.manager import MidiDeviceManager
from engine.io.service import MidiService
from tests._utils.midi import RecordingStore, make_access


class _InPort:
    def iter_pending(self):
        return iter(())

    def close(self) -> None:
        pass


@pytest.mark.asyncio
async def test_setup_midi_disabled_returns_null() -> None:
    manager, service = await setup_midi(False)
    assert manager is None
    assert isinstance(service, NullMidiService)
    assert service.tick(0.1) == 0


@pytest.mark.asyncio
async def test_setup_midi_wires_manager_and_service(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(service_mod, "open_input_port", lambda name: _InPort())
    store = RecordingStore()
    manager, service = await setup_midi(
        True, store=store, midi_access=make_access(("Pad", "Acme"))
    )
    assert isinstance(manager, MidiDeviceManager)
    assert isinstance(service, MidiService)
    assert manager.store is store
    assert list(service.ports) == ["Pad"]


@pytest.mark.asyncio
async def test_setup_midi_falls_back_on_store_failure(caplog: pytest.LogCaptureFixture) -> None:
    class _Broken(RecordingStore):
        async def read(self):
            raise ConfigReadError("corrupt")

    with caplog.at_level(logging.WARNING, logger="api.midi"):
        manager, service = await setup_midi(
            True, store=_Broken(), midi_access=make_access(("Pad", "Acme"))
        )
    assert manager is None
    assert isinstance(service, NullMidiService)
    assert "falling back" in caplog.text

from __future__ import annotations

import types

import pytest

from engine.io import controller as ctrl
from engine.io.controller import (
    UNKNOWN_MANUFACTURER,
    InvalidPortError,
    open_input_port,
    open_midi_access,
    resolve_manufacturer,
)


class _InPort:
    def __init__(self, name: str) -> None:
        self.name = name

    def iter_pending(self):  # pragma: no cover - 未使用
        return []


@pytest.fixture()
def fake_mido(monkeypatch: pytest.MonkeyPatch):
    fake = types.SimpleNamespace(
        get_input_names=lambda: ["nanoKONTROL2 SLIDER/KNOB", "Launchpad X:Launchpad X MIDI 1 20:0", "Loop"],
        get_output_names=lambda: ["Intech Grid MIDI device"],
        open_input=lambda name: _InPort(name),
    )
    # 実 mido を使わず、モジュール側の参照を差し替える
    monkeypatch.setattr(ctrl, "mido", fake, raising=True)
    return fake


def test_resolve_manufacturer_order() -> None:
    table = {"nanoKONTROL": "KORG INC.", "Launchpad": "Focusrite - Novation"}
    assert resolve_manufacturer("nanoKONTROL2 SLIDER/KNOB", table) == "KORG INC."
    assert resolve_manufacturer("Launchpad X:Launchpad X MIDI 1", table) == "Focusrite - Novation"
    assert resolve_manufacturer("Arturia:MiniLab 24:0", table) == "Arturia"
    assert resolve_manufacturer("Loop", table) == UNKNOWN_MANUFACTURER
    assert resolve_manufacturer("Loop", None) == UNKNOWN_MANUFACTURER


def test_open_midi_access_lists_ports_with_manufacturers(fake_mido) -> None:
    access = open_midi_access({"nanoKONTROL": "KORG INC.", "Intech Grid": "Intech Studio"})
    assert [(p.name, p.manufacturer) for p in access.inputs] == [
        ("nanoKONTROL2 SLIDER/KNOB", "KORG INC."),
        ("Launchpad X:Launchpad X MIDI 1 20:0", "Launchpad X"),
        ("Loop", UNKNOWN_MANUFACTURER),
    ]
    assert [(p.name, p.manufacturer) for p in access.outputs] == [
        ("Intech Grid MIDI device", "Intech Studio")
    ]


def test_open_input_port_valid_and_invalid(fake_mido) -> None:
    port = open_input_port("Loop")
    assert isinstance(port, _InPort) and port.name == "Loop"
    with pytest.raises(InvalidPortError) as ei:
        open_input_port("Missing")
    assert "Missing" in str(ei.value)

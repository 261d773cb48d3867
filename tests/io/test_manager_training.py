from __future__ import annotations

import pytest

from engine.io.manager import MidiDeviceManager
from engine.io.trainer import MidiDeviceTrainer
from tests._utils.midi import RecordingStore, cc_event, make_access


class _SpyTrainer(MidiDeviceTrainer):
    def __init__(self) -> None:
        super().__init__()
        self.received: list[object] = []

    def train(self, event):
        self.received.append(event)
        return super().train(event)


def test_initial_state_is_idle(manager: MidiDeviceManager) -> None:
    assert manager.is_training_mode is False


def test_input_message_not_forwarded_while_idle(store: RecordingStore) -> None:
    spy = _SpyTrainer()
    manager = MidiDeviceManager(store, trainer=spy)
    manager.on_input_message(cc_event("Pad"))
    assert spy.received == []


@pytest.mark.asyncio
async def test_input_message_forwarded_once_while_training(store: RecordingStore) -> None:
    spy = _SpyTrainer()
    manager = MidiDeviceManager(store, trainer=spy)
    await manager.load_all(make_access(("Pad", "Acme")))
    manager.start_training()
    assert manager.is_training_mode is True

    event = cc_event("Pad", control=5)
    manager.on_input_message(event)

    assert spy.received == [event]
    assert manager.is_training_mode is True
    assert len(manager.midi_devices) == 1


@pytest.mark.asyncio
async def test_start_training_shares_live_collection_and_callback(store: RecordingStore) -> None:
    spy = _SpyTrainer()
    manager = MidiDeviceManager(store, trainer=spy)
    trained: list[tuple[str, int]] = []
    manager.on_trained = lambda d, c: trained.append((d.name, c.id))
    manager.start_training()

    assert spy.midi_devices is manager.midi_devices
    # 学習開始後に追加されたデバイスもトレーナーから見える
    await manager.load_all(make_access(("Pad", "Acme")))
    manager.on_input_message(cc_event("Pad"))

    assert trained == [("Pad", 1)]
    assert len(manager.midi_devices[0].midi_device_controls) == 1


def test_start_training_twice_rearms_with_latest_callback(store: RecordingStore) -> None:
    spy = _SpyTrainer()
    manager = MidiDeviceManager(store, trainer=spy)
    first = lambda d, c: None  # noqa: E731
    second = lambda d, c: None  # noqa: E731
    manager.on_trained = first
    manager.start_training()
    manager.on_trained = second
    manager.start_training()
    assert manager.is_training_mode is True
    assert spy.on_after_trained is second


@pytest.mark.asyncio
async def test_start_then_stop_without_messages_saves_exactly_once(manager: MidiDeviceManager) -> None:
    await manager.load_all(make_access(("Pad", "Acme")))
    saves: list[int] = []
    manager.on_saved = lambda: saves.append(1)

    manager.start_training()
    await manager.stop_training()

    assert manager.is_training_mode is False
    assert saves == [1]


@pytest.mark.asyncio
async def test_stop_training_while_idle_still_saves(manager: MidiDeviceManager) -> None:
    saves: list[int] = []
    manager.on_saved = lambda: saves.append(1)
    await manager.stop_training()
    assert manager.is_training_mode is False
    assert saves == [1]


@pytest.mark.asyncio
async def test_training_session_persists_new_bindings(manager: MidiDeviceManager, store: RecordingStore) -> None:
    await manager.load_all(make_access(("Pad", "Acme")))
    manager.start_training()
    manager.on_input_message(cc_event("Pad", control=74, value=127))
    await manager.stop_training()

    # 停止後は転送されない
    manager.on_input_message(cc_event("Pad", control=75))
    saved = store.snapshot()["Acme"]["Pad"]["midiDeviceControls"]
    assert [(c["id"], c["number"]) for c in saved] == [(1, 74)]
    assert len(manager.midi_devices[0].midi_device_controls) == 1


def test_trainer_is_owned_per_manager(store: RecordingStore) -> None:
    a = MidiDeviceManager(store)
    b = MidiDeviceManager(RecordingStore())
    assert a.trainer is a.trainer
    assert a.trainer is not b.trainer


def test_output_message_is_pass_through(manager: MidiDeviceManager) -> None:
    manager.start_training()
    assert manager.on_output_message(cc_event("Pad")) is None
    assert manager.midi_devices == []

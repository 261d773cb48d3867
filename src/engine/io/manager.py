"""
どこで: `engine.io` の管理層。
何を: 検出済みハードウェアと `MidiDevice` 列の突き合わせ、設定ストアへの保存/復元、
      トレーニングモードの切替と受信メッセージの振り分けを担う `MidiDeviceManager`。
なぜ: デバイス依存の状態を 1 か所に集約し、アプリ側は検出→読込→受信→保存の窓口だけを
      扱えば済むようにするため。

並行性:
- 単一スレッドのイベントループから呼ばれる前提。`load_all`/`save_all`/
  `remove_control_binding` は同一インスタンス上で並行に呼ばないこと（内部ロックは無い）。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Optional

from util.paths import resolve_device_store_path
from util.utils import midi_section

from .config_store import ConfigStore, JsonConfigStore, get_path
from .controller import MidiAccess, open_midi_access
from .device import MidiDevice, find_device
from .escaping import FIELD_CONTROLS, FIELD_OPTIONS, escape, namespace_key
from .trainer import MidiDeviceTrainer, TrainedCallback, _noop_trained

logger = logging.getLogger(__name__)

SavedCallback = Callable[[], None]


def _noop_saved() -> None:
    return None


@dataclass
class SavedDeviceConfig:
    """設定ツリー上の 1 デバイス分（欠落フィールドは空で補う）。"""

    midi_device_controls: list[Any] = field(default_factory=list)
    options: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_tree(
        cls, tree: Mapping[str, Any], manufacturer: str, name: str
    ) -> "SavedDeviceConfig":
        """`tree[manufacturer][escape(name)]`（無ければ生の name）を取り出す。"""
        if not isinstance(tree, dict):
            return cls()
        # エスケープ済みセグメントは `.` を含まないのでパスとして辿れる
        entry = get_path(tree, f"{manufacturer}.{escape(name)}")
        if entry is None:
            branch = get_path(tree, manufacturer)
            entry = branch.get(name) if isinstance(branch, Mapping) else None
        if not isinstance(entry, Mapping):
            return cls()
        controls = entry.get(FIELD_CONTROLS)
        options = entry.get(FIELD_OPTIONS)
        return cls(
            midi_device_controls=list(controls) if isinstance(controls, list) else [],
            options=dict(options) if isinstance(options, Mapping) else {},
        )


def _port_field(port: Any, key: str) -> str:
    if isinstance(port, Mapping):
        return str(port.get(key, ""))
    return str(getattr(port, key, ""))


def _iter_ports(inputs: Any) -> Iterable[Any]:
    # Web MIDI 風の Map（name -> port）も受け付ける
    if isinstance(inputs, Mapping):
        return inputs.values()
    return inputs


class MidiDeviceManager:
    """
    検出済み MIDI 入力を `MidiDevice` として保持し、割り当てを保存/復元するクラス。
    `connect_midi_devices()` で検出と読込まで済ませたインスタンスを得られる。
    """

    def __init__(self, store: ConfigStore, trainer: Optional[MidiDeviceTrainer] = None):
        self._store = store
        self._trainer = trainer
        self._midi_devices: list[MidiDevice] = []
        self._is_training_mode = False
        self._on_trained: TrainedCallback = _noop_trained
        self._on_saved: SavedCallback = _noop_saved

    def __repr__(self):
        result = "MidiDeviceManager:\n"
        for device in self._midi_devices:
            result += f"  #{device.id} {device.manufacturer} / {device.name}\n"
        return result

    @property
    def store(self) -> ConfigStore:
        return self._store

    @property
    def trainer(self) -> MidiDeviceTrainer:
        if self._trainer is None:
            self._trainer = MidiDeviceTrainer()
        return self._trainer

    @property
    def midi_devices(self) -> list[MidiDevice]:
        return self._midi_devices

    @property
    def is_training_mode(self) -> bool:
        return self._is_training_mode

    @property
    def on_trained(self) -> TrainedCallback:
        return self._on_trained

    @on_trained.setter
    def on_trained(self, fn: Optional[TrainedCallback]) -> None:
        self._on_trained = fn if fn is not None else _noop_trained

    @property
    def on_saved(self) -> SavedCallback:
        return self._on_saved

    @on_saved.setter
    def on_saved(self, fn: Optional[SavedCallback]) -> None:
        self._on_saved = fn if fn is not None else _noop_saved

    def next_available_device_id(self) -> int:
        return max((d.id for d in self._midi_devices), default=0) + 1

    def device_by_id(self, device_id: int) -> Optional[MidiDevice]:
        return find_device(self._midi_devices, id=device_id)

    def device_by_name(self, name: str) -> Optional[MidiDevice]:
        return find_device(self._midi_devices, name=name)

    async def load_all(self, midi_access: Any) -> None:
        """検出済み入力ポートのうち未登録のものを `MidiDevice` として追加する。

        - 設定ツリーを先に読み込む。失敗は呼び出し側へ伝搬し、デバイス列は変更しない。
        - 既に同名のデバイスがあるポートは触らない（冪等）。
        """
        conf = await self._store.read()

        for port in _iter_ports(midi_access.inputs):
            name = _port_field(port, "name")
            if self.device_by_name(name) is not None:
                continue
            manufacturer = escape(_port_field(port, "manufacturer"))
            saved = SavedDeviceConfig.from_tree(conf, manufacturer, name)
            device = MidiDevice(
                id=self.next_available_device_id(),
                name=name,
                manufacturer=manufacturer,
                midi_device_controls=saved.midi_device_controls,
                options=saved.options,
            )
            self._midi_devices.append(device)
            logger.info(
                "Added MIDI device #%d: %s (%s, %d controls)",
                device.id,
                device.name,
                device.manufacturer,
                len(device.midi_device_controls),
            )

    async def save_all(self) -> None:
        """全デバイスの `options` と `midiDeviceControls` を保存し、`on_saved` を 1 回呼ぶ。"""
        for device in self._midi_devices:
            await self._store.save(
                namespace_key(device.manufacturer, device.name, FIELD_OPTIONS),
                dict(device.options),
            )
            await self._store.save(
                namespace_key(device.manufacturer, device.name, FIELD_CONTROLS),
                device.controls_as_config(),
            )
        logger.debug("Saved %d MIDI device(s)", len(self._midi_devices))
        self._on_saved()

    async def remove_control_binding(self, device_id: int, control_id: int) -> None:
        """割り当てを 1 件削除して保存する。デバイスが無くても保存は行う。"""
        device = self.device_by_id(device_id)
        if device is not None:
            device.remove_control(control_id)
        else:
            logger.debug("remove_control_binding: no device with id %s", device_id)
        await self.save_all()

    def start_training(self) -> None:
        """
        1. トレーナーにデバイス列（参照）と `on_trained` を（再）設定する
        2. トレーニングモードにし、`on_input_message` がトレーナーへ転送するようにする
        """
        self._is_training_mode = True
        trainer = self.trainer
        trainer.midi_devices = self._midi_devices
        trainer.on_after_trained = self._on_trained

    async def stop_training(self) -> None:
        """トレーニングモードを解除し、学習結果を保存する。"""
        self._is_training_mode = False
        await self.save_all()

    def on_input_message(self, e: Any) -> None:
        if self._is_training_mode:
            self.trainer.train(e)

    def on_output_message(self, e: Any) -> None:  # noqa: ARG002
        # 出力ポートは現状パススルーのみ
        return None


def build_default_store() -> JsonConfigStore:
    """設定 `midi.store_path`（既定 `data/midi/devices.json`）の JSON ストアを返す。"""
    return JsonConfigStore(resolve_device_store_path())


async def connect_midi_devices(
    store: Optional[ConfigStore] = None, midi_access: Optional[MidiAccess] = None
) -> MidiDeviceManager:
    """
    PC に接続されている MIDI デバイスを検出し、保存済み設定を読み込んだ MidiDeviceManager を返す。
    """
    if midi_access is None:
        manufacturers = midi_section().get("manufacturers") or {}
        midi_access = open_midi_access(manufacturers if isinstance(manufacturers, dict) else {})
    manager = MidiDeviceManager(store if store is not None else build_default_store())
    await manager.load_all(midi_access)
    return manager


__all__ = [
    "MidiDeviceManager",
    "SavedDeviceConfig",
    "build_default_store",
    "connect_midi_devices",
]

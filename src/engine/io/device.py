"""
どこで: `engine.io` のデバイスモデル。
何を: 1 つの入力ポートに対応する `MidiDevice` と、その中のコントロール割り当て `MidiDeviceControl`。
なぜ: トレーナーが割り当てを追加/更新し、マネージャが設定ストアへ保存/復元できるように、
      JSON 化可能な最小限の値オブジェクトとして表現するため。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

logger = logging.getLogger(__name__)

CONTROL_TYPES = ("control_change", "note", "pitchwheel")


@dataclass
class MidiDeviceControl:
    """物理コントロール（ノブ/パッド等）とアクションの対応 1 件。

    - `number` は CC 番号/ノート番号。pitchwheel は None。
    - `value` は最後に観測した値（0.0–1.0 に正規化済み）。
    """

    id: int
    type: str
    channel: int = 0
    number: Optional[int] = None
    action: Optional[str] = None
    value: float = 0.0

    def matches(self, type: str, channel: int, number: Optional[int]) -> bool:
        return self.type == type and self.channel == channel and self.number == number

    def to_config(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "channel": self.channel,
            "number": self.number,
            "action": self.action,
            "value": self.value,
        }

    @classmethod
    def from_config(cls, data: Mapping[str, Any]) -> "MidiDeviceControl":
        """保存形式から復元する。必須キー欠落/型不正は ValueError。"""
        try:
            ctype = str(data["type"])
            if ctype not in CONTROL_TYPES:
                raise ValueError(f"unknown control type: {ctype!r}")
            number = data.get("number")
            action = data.get("action")
            return cls(
                id=int(data["id"]),
                type=ctype,
                channel=int(data.get("channel", 0)),
                number=None if number is None else int(number),
                action=None if action is None else str(action),
                value=float(data.get("value", 0.0)),
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"invalid control binding: {data!r}") from e


def _coerce_controls(raw: Any) -> list[MidiDeviceControl]:
    if raw is None:
        return []
    if not isinstance(raw, (list, tuple)):
        logger.warning("Ignoring saved controls: expected a list, got %s", type(raw).__name__)
        return []
    controls: list[MidiDeviceControl] = []
    for item in raw:
        if isinstance(item, MidiDeviceControl):
            controls.append(item)
            continue
        if not isinstance(item, Mapping):
            logger.warning("Ignoring saved control entry: %r", item)
            continue
        try:
            controls.append(MidiDeviceControl.from_config(item))
        except ValueError as e:
            # 無効な割り当ては無視（安全側）
            logger.warning("Ignoring saved control entry: %s", e)
    return controls


@dataclass
class MidiDevice:
    """1 つの入力ポートの永続表現。

    `manufacturer` は名前空間セグメントとしてエスケープ済みの文字列を保持する。
    """

    id: int
    name: str
    manufacturer: str
    midi_device_controls: list[MidiDeviceControl] = field(default_factory=list)
    options: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.midi_device_controls = _coerce_controls(self.midi_device_controls)
        if self.options is None:
            self.options = {}
        elif not isinstance(self.options, dict):
            logger.warning(
                "Ignoring saved options for %s: expected a mapping, got %s",
                self.name,
                type(self.options).__name__,
            )
            self.options = {}

    def remove_control(self, control_id: int) -> bool:
        """id の一致する割り当てを削除する。無ければ何もしない（False）。"""
        for i, control in enumerate(self.midi_device_controls):
            if control.id == control_id:
                del self.midi_device_controls[i]
                return True
        return False

    def find_control(
        self, type: str, channel: int, number: Optional[int]
    ) -> Optional[MidiDeviceControl]:
        for control in self.midi_device_controls:
            if control.matches(type, channel, number):
                return control
        return None

    def next_available_control_id(self) -> int:
        return max((c.id for c in self.midi_device_controls), default=0) + 1

    def add_control(self, control: MidiDeviceControl) -> MidiDeviceControl:
        self.midi_device_controls.append(control)
        return control

    def controls_as_config(self) -> list[dict[str, Any]]:
        return [c.to_config() for c in self.midi_device_controls]


def find_device(devices: Iterable[MidiDevice], *, id: int | None = None, name: str | None = None):
    """id または name で最初に一致したデバイスを返す（無ければ None）。"""
    for device in devices:
        if id is not None and device.id == id:
            return device
        if name is not None and device.name == name:
            return device
    return None


__all__ = ["CONTROL_TYPES", "MidiDeviceControl", "MidiDevice", "find_device"]

"""
MIDI ポートアクセス（IO モジュール）

本モジュールは、プラットフォームの MIDI 入出力ポートを列挙し、マネージャが扱える
「ハードウェアアクセス」ハンドル（`MidiAccess`）に変換する薄いレイヤを提供する。

主な責務:
- 入力/出力ポート名の列挙と、ポート名からのメーカー名推定。
- 入力ポートのオープン（存在しない場合は `InvalidPortError`）。
- 受信メッセージを「どのポートから来たか」と組にした `MidiInputEvent` の定義。

設計メモ:
- mido はポートのメーカー名を提供しないため、設定 `midi.manufacturers`
  （ポート名の部分文字列 -> メーカー名）で解決し、無ければ ALSA 形式の
  `client:port` のクライアント部、最後に `"unknown"` を用いる。
- mido は関数内で遅延 import せず、モジュール属性として保持する（テストで差し替え可能）。

使用例:
    from engine.io.controller import open_midi_access
    access = open_midi_access({"nanoKONTROL": "KORG INC."})
    for port in access.inputs:
        print(port.name, port.manufacturer)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import mido

UNKNOWN_MANUFACTURER = "unknown"


class InvalidPortError(Exception):
    """要求された MIDI ポート名が存在しない場合に送出される例外。"""


@dataclass(frozen=True)
class MidiPort:
    name: str
    manufacturer: str = UNKNOWN_MANUFACTURER


@dataclass
class MidiAccess:
    """利用可能な MIDI ハードウェアのスナップショット。"""

    inputs: list[MidiPort] = field(default_factory=list)
    outputs: list[MidiPort] = field(default_factory=list)


@dataclass(frozen=True)
class MidiInputEvent:
    """入力ポート名と生メッセージの組。"""

    port_name: str
    message: Any


def resolve_manufacturer(port_name: str, manufacturers: Optional[Mapping[str, str]] = None) -> str:
    """ポート名からメーカー名を推定する。

    1) `manufacturers` の部分文字列が最初に見つかったもの
    2) `client:port` 形式のクライアント部
    3) `UNKNOWN_MANUFACTURER`
    """
    for needle, manufacturer in (manufacturers or {}).items():
        if needle and needle in port_name:
            return str(manufacturer)
    if ":" in port_name:
        client = port_name.split(":", 1)[0].strip()
        if client:
            return client
    return UNKNOWN_MANUFACTURER


def open_midi_access(manufacturers: Optional[Mapping[str, str]] = None) -> MidiAccess:
    """PC に接続されている MIDI ポートを列挙して `MidiAccess` を返す。"""
    inputs = [
        MidiPort(name, resolve_manufacturer(name, manufacturers))
        for name in mido.get_input_names()  # type: ignore
    ]
    outputs = [
        MidiPort(name, resolve_manufacturer(name, manufacturers))
        for name in mido.get_output_names()  # type: ignore
    ]
    return MidiAccess(inputs=inputs, outputs=outputs)


def open_input_port(port_name: str):
    """入力ポートを開いて返す。存在しなければ `InvalidPortError`。"""
    if port_name in mido.get_input_names():  # type: ignore
        return mido.open_input(port_name)  # type: ignore
    handle_invalid_port_name(port_name)


def handle_invalid_port_name(port_name: str) -> None:
    logger = logging.getLogger(__name__)
    available = mido.get_input_names()  # type: ignore
    logger.error("Invalid port name: %s", port_name)
    logger.info("Available input ports: %s", available)
    raise InvalidPortError(f"Invalid port name: {port_name}. Available: {available}")


def show_available_ports() -> None:
    logger = logging.getLogger(__name__)
    logger.info("Available ports:")
    logger.info("  input: %s", mido.get_input_names())  # type: ignore
    logger.info("  output: %s", mido.get_output_names())  # type: ignore


__all__ = [
    "UNKNOWN_MANUFACTURER",
    "InvalidPortError",
    "MidiPort",
    "MidiAccess",
    "MidiInputEvent",
    "resolve_manufacturer",
    "open_midi_access",
    "open_input_port",
    "handle_invalid_port_name",
    "show_available_ports",
]


if __name__ == "__main__":
    from common.logging import setup_default_logging

    setup_default_logging()
    show_available_ports()

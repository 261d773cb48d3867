"""
どこで: `engine.io` のポーリング窓口。
何を: 開いた入力ポートから保留中のメッセージを取り出し、`MidiInputEvent` として
      マネージャの `on_input_message` へ流す `MidiService`。
なぜ: ランタイム（イベントループ/フレーム駆動）から 1 フレーム 1 回 `tick()` を呼ぶだけで
      受信処理が進むようにするため。
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from .controller import InvalidPortError, MidiInputEvent, open_input_port
from .manager import MidiDeviceManager

logger = logging.getLogger(__name__)


class MidiService:
    def __init__(self, manager: MidiDeviceManager, ports: Optional[Mapping[str, Any]] = None):
        self.manager = manager
        self.ports: dict[str, Any] = dict(ports or {})

    @classmethod
    def open(cls, manager: MidiDeviceManager) -> "MidiService":
        """マネージャが保持する全デバイスの入力ポートを開く。

        - 存在しないポート（`InvalidPortError`）は警告して飛ばす。
        - それ以外の失敗では、開いたポートを閉じてから例外を伝搬する。
        """
        service = cls(manager)
        try:
            for device in manager.midi_devices:
                try:
                    service.ports[device.name] = open_input_port(device.name)
                except InvalidPortError as e:
                    logger.warning("Skipping MIDI input %s: %s", device.name, e)
        except BaseException:
            service.close()
            raise
        return service

    def tick(self, dt: float | None = None) -> int:  # noqa: ARG002
        """保留中のメッセージをすべて振り分け、件数を返す。"""
        routed = 0
        for port_name, inport in self.ports.items():
            for msg in inport.iter_pending():
                self.manager.on_input_message(MidiInputEvent(port_name, msg))
                routed += 1
        return routed

    def close(self) -> None:
        for inport in self.ports.values():
            close = getattr(inport, "close", None)
            if callable(close):
                close()
        self.ports.clear()

    def __enter__(self) -> "MidiService":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


__all__ = ["MidiService"]

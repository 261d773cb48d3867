"""
どこで: `api.midi`
何を: MIDI 初期化（Null 実装含む）。設定→ストア→マネージャ→サービスの配線を行う。
なぜ: アプリ側から初期化責務を分離し、デバイス未接続/依存未導入時のフォールバックを簡潔に保つため。
"""

from __future__ import annotations

import logging
from typing import Optional

from engine.io.config_store import ConfigStore, ConfigStoreError
from engine.io.controller import InvalidPortError, MidiAccess

logger = logging.getLogger(__name__)


class NullMidiService:
    """MIDI 無効時/失敗時の代替。何も受信しない。"""

    def __init__(self) -> None:
        self.manager = None
        self.ports: dict = {}

    def tick(self, dt: float | None = None) -> int:  # noqa: ARG002
        return 0

    def close(self) -> None:
        return None


async def setup_midi(
    use_midi: bool,
    *,
    store: Optional[ConfigStore] = None,
    midi_access: Optional[MidiAccess] = None,
):
    """MIDI を初期化して (manager, service) を返す。

    - `use_midi` が False の場合は (None, NullMidiService) を返す。
    - 依存未導入/ポート異常/設定ストア異常時も Null へフォールバックする。
    """
    if not use_midi:
        return None, NullMidiService()

    try:
        from engine.io.manager import connect_midi_devices
        from engine.io.service import MidiService

        manager = await connect_midi_devices(store=store, midi_access=midi_access)
        service = MidiService.open(manager)
        return manager, service
    except (ImportError, OSError, InvalidPortError, ConfigStoreError) as e:
        logger.warning("MIDI unavailable; falling back to NullMidiService: %s", e)
        return None, NullMidiService()


__all__ = ["setup_midi", "NullMidiService"]

"""
どこで: `api` 入口（高レベル公開 API）。
何を: MIDI 初期化 `setup_midi` と、アプリが直接扱う型（マネージャ/デバイス/ストア）を再輸出。
なぜ: 利用者が単一名前空間から検出→読込→トレーニング→保存まで完結できるようにするため。

Usage:
    import asyncio
    from api import setup_midi

    async def main():
        manager, service = await setup_midi(True)
        if manager is None:
            return
        manager.start_training()
        for _ in range(600):
            service.tick()
            await asyncio.sleep(1 / 60)
        await manager.stop_training()

    asyncio.run(main())
"""

from engine.io.config_store import JsonConfigStore, MemoryConfigStore
from engine.io.device import MidiDevice, MidiDeviceControl
from engine.io.manager import MidiDeviceManager

from .midi import NullMidiService, setup_midi

__all__ = [
    "setup_midi",
    "NullMidiService",
    "MidiDeviceManager",
    "MidiDevice",
    "MidiDeviceControl",
    "JsonConfigStore",
    "MemoryConfigStore",
]

__version__ = "2025.10"

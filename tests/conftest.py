"""共通フィクスチャ。

- メモリ上の設定ストア（呼び出し記録つき）
- ストアを注入済みの `MidiDeviceManager`
- 設定/環境変数を汚さないためのデータディレクトリ隔離
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest

from engine.io.manager import MidiDeviceManager
from tests._utils.midi import RecordingStore


@pytest.fixture()
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture()
def manager(store: RecordingStore) -> MidiDeviceManager:
    return MidiDeviceManager(store)


@pytest.fixture()
def isolated_data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    from common import settings

    monkeypatch.setenv("MDM_DATA_DIR", str(tmp_path))
    settings.reload_from_env()
    yield tmp_path
    monkeypatch.delenv("MDM_DATA_DIR", raising=False)
    settings.reload_from_env()

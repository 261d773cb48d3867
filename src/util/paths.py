"""
どこで: `util.paths`。
何を: MIDI デバイス設定の保存先ディレクトリ/ファイルの生成と解決ユーティリティを提供する。
なぜ: ランタイムから簡潔に保存先を扱え、並行呼び出しでも安全に作成できるようにするため。
"""

from __future__ import annotations

from pathlib import Path

from common.settings import get as _get_settings

from .utils import _find_project_root, midi_section


def data_root() -> Path:
    """永続化ルートを返す。

    - 設定 `DATA_DIR`（環境変数 `MDM_DATA_DIR`）を最優先。
    - 未設定ならプロジェクトルート直下の `data/`。
    """
    env_dir = _get_settings().DATA_DIR
    if env_dir:
        return Path(env_dir)
    return _find_project_root(Path(__file__).parent) / "data"


def ensure_midi_dir() -> Path:
    """MIDI 設定の保存先 `data/midi/` を作成して返す。

    - 既存の場合もそのまま Path を返す。
    - 並行呼び出しに対して `exist_ok=True` で安全。
    """
    out = data_root() / "midi"
    out.mkdir(parents=True, exist_ok=True)
    return out


def resolve_device_store_path() -> Path:
    """デバイス設定 JSON のパスを返す。

    優先順:
    1) 設定 `midi.store_path`（相対パスはプロジェクトルート基準）
    2) `ensure_midi_dir() / "devices.json"`
    """
    raw = midi_section().get("store_path")
    if isinstance(raw, str) and raw.strip():
        path = Path(raw).expanduser()
        if not path.is_absolute():
            path = _find_project_root(Path(__file__).parent) / path
        return path
    return ensure_midi_dir() / "devices.json"

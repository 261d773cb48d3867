"""
どこで: `common.settings`
何を: プロジェクトの環境変数を型付きで一元管理し、起動時に読み込む。
なぜ: `os.getenv` の散在を解消し、既定値/型の一貫性とテスト容易性を高めるため。
"""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_bool, env_str


@dataclass
class _Settings:
    # 永続化（None はプロジェクトルート/data を使う）
    DATA_DIR: str | None = None

    # MIDI
    MIDI_DEBUG: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"


_settings = _Settings()


def reload_from_env() -> None:
    """環境変数から設定を再読込。

    - `MDM_DATA_DIR`: 永続化ルート（`<dir>/midi/devices.json` を使う）。
    - `MDM_MIDI_DEBUG`: トレーナー等の詳細ログ。
    - `MDM_LOG_LEVEL`: `setup_default_logging` の既定レベル。
    """
    _settings.DATA_DIR = env_str("MDM_DATA_DIR")
    _settings.MIDI_DEBUG = env_bool("MDM_MIDI_DEBUG", False)
    _settings.LOG_LEVEL = (env_str("MDM_LOG_LEVEL", "INFO") or "INFO").upper()


def get() -> _Settings:
    """現在の設定スナップショットを返す。"""
    return _settings


# 初期ロード
reload_from_env()


__all__ = ["get", "reload_from_env", "_Settings"]

"""
どこで: `engine.io` の永続化層。
何を: ドット区切りパスで読み書きする非同期 Key-Value ストア（JSON ファイル/メモリ）を提供する。
なぜ: デバイスごとのコントロール割り当てとオプションを `<manufacturer>.<name>.<field>` の
      名前空間に保存し、次回起動時に復元できるようにするため。

仕様（要点）:
- `read()` は設定ツリー全体（dict）を返す。ファイルが無い場合は空ツリー。
- `save(path, value)` は 1 パスのみ書き換える。途中のノードは必要に応じて dict を作成する。
- 壊れたファイル/書き込み失敗は `ConfigReadError` / `ConfigWriteError` を送出（元例外を連結）。
- ファイル I/O はワーカースレッドで実行し、イベントループを塞がない。
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

PATH_SEPARATOR = "."


class ConfigStoreError(Exception):
    """設定ストア操作の失敗を表す基底例外。"""


class ConfigReadError(ConfigStoreError):
    """設定ツリーの読み込みに失敗した場合に送出される例外。"""


class ConfigWriteError(ConfigStoreError):
    """設定値の書き込みに失敗した場合に送出される例外。"""


@runtime_checkable
class ConfigStore(Protocol):
    async def read(self) -> dict[str, Any]: ...

    async def save(self, path: str, value: Any) -> None: ...


def split_path(path: str) -> list[str]:
    parts = path.split(PATH_SEPARATOR)
    if not path or any(p == "" for p in parts):
        raise ConfigWriteError(f"invalid config path: {path!r}")
    return parts


def set_path(tree: dict[str, Any], path: str, value: Any) -> None:
    """`tree` の `path` に `value` を設定する（中間ノードは dict を作成）。"""
    parts = split_path(path)
    node: Any = tree
    for part in parts[:-1]:
        child = node.get(part)
        if child is None:
            child = {}
            node[part] = child
        elif not isinstance(child, dict):
            raise ConfigWriteError(
                f"cannot write {path!r}: {part!r} holds a {type(child).__name__}, not a mapping"
            )
        node = child
    node[parts[-1]] = value


def get_path(tree: dict[str, Any], path: str, default: Any = None) -> Any:
    """`tree` から `path` の値を取得する（途中で欠落していれば `default`）。"""
    node: Any = tree
    for part in path.split(PATH_SEPARATOR):
        if not isinstance(node, dict) or part not in node:
            return default
        node = node[part]
    return node


class MemoryConfigStore:
    """プロセス内の dict を保持するストア（テスト/一時利用向け）。

    読み書きとも深いコピーを介し、呼び出し側の変更がストアへ漏れないようにする。
    """

    def __init__(self, tree: dict[str, Any] | None = None) -> None:
        self._tree: dict[str, Any] = copy.deepcopy(tree) if tree else {}
        self.save_count = 0

    async def read(self) -> dict[str, Any]:
        return copy.deepcopy(self._tree)

    async def save(self, path: str, value: Any) -> None:
        set_path(self._tree, path, copy.deepcopy(value))
        self.save_count += 1

    def snapshot(self) -> dict[str, Any]:
        """現在のツリー（深いコピー）。"""
        return copy.deepcopy(self._tree)


class JsonConfigStore:
    """JSON ファイル 1 つをバックエンドにするストア。

    `save` は読み込み→更新→一時ファイル経由の置換を 1 単位とし、同一インスタンス上の
    `save` 同士は `asyncio.Lock` で直列化する。
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        self._lock = asyncio.Lock()

    def __repr__(self) -> str:
        return f"JsonConfigStore(path={str(self.path)!r})"

    async def read(self) -> dict[str, Any]:
        return await asyncio.to_thread(self._read_sync)

    async def save(self, path: str, value: Any) -> None:
        async with self._lock:
            await asyncio.to_thread(self._save_sync, path, value)

    # --- blocking helpers (worker thread) ---
    def _read_sync(self) -> dict[str, Any]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ConfigReadError(f"failed to read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigReadError(
                f"failed to read {self.path}: root must be an object, got {type(data).__name__}"
            )
        return data

    def _save_sync(self, path: str, value: Any) -> None:
        try:
            tree = self._read_sync()
        except ConfigReadError as e:
            raise ConfigWriteError(f"cannot update {path!r}: {e}") from e
        set_path(tree, path, value)
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            text = json.dumps(tree, ensure_ascii=False, indent=2)
            with open(tmp, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp, self.path)
        except (OSError, TypeError, ValueError) as e:
            raise ConfigWriteError(f"failed to write {path!r} to {self.path}: {e}") from e
        logger.debug("saved %s -> %s", path, self.path)


__all__ = [
    "ConfigStore",
    "ConfigStoreError",
    "ConfigReadError",
    "ConfigWriteError",
    "MemoryConfigStore",
    "JsonConfigStore",
    "split_path",
    "set_path",
    "get_path",
]

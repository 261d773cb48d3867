"""
どこで: `engine.io` の名前空間キー生成。
何を: メーカー名/デバイス名を設定ツリーのセグメントとして安全に使うための `.` エスケープと、
      `<manufacturer>.<name>.<field>` 形式のキー組み立てを提供する。
なぜ: 設定ストアは `.` をパス区切りに使うため、生の名前に含まれる `.` が意図しない
      ネストや他デバイスとの衝突を生むのを防ぐため。

前提:
- 生の文字列がセンチネル `ESCAPED_DOT` をそのまま含む、または `ESCAPED_EMPTY` と等しいことは無いものとする
  （含む場合、`unescape(escape(s))` は恒等にならない）。
"""

from __future__ import annotations

ESCAPED_DOT = "__dot__"
# 空文字列のセグメント（Web MIDI はメーカー名を "" で返すことがある）
ESCAPED_EMPTY = "__empty__"

FIELD_OPTIONS = "options"
FIELD_CONTROLS = "midiDeviceControls"
NAMESPACE_FIELDS = (FIELD_OPTIONS, FIELD_CONTROLS)


def escape(s: str) -> str:
    """`.` をすべて `ESCAPED_DOT` に置換する。空文字列は `ESCAPED_EMPTY`。"""
    if s == "":
        return ESCAPED_EMPTY
    return s.replace(".", ESCAPED_DOT)


def unescape(s: str) -> str:
    """`escape` の逆変換。"""
    if s == ESCAPED_EMPTY:
        return ""
    return s.replace(ESCAPED_DOT, ".")


def namespace_key(manufacturer: str, name: str, field: str) -> str:
    """`escape(manufacturer).escape(name).field` を返す。

    `manufacturer` が既にエスケープ済みでも結果は変わらない（センチネルは `.` を含まない）。
    """
    if field not in NAMESPACE_FIELDS:
        raise ValueError(f"unknown namespace field: {field!r} (expected one of {NAMESPACE_FIELDS})")
    return f"{escape(manufacturer)}.{escape(name)}.{field}"


__all__ = [
    "ESCAPED_DOT",
    "ESCAPED_EMPTY",
    "FIELD_OPTIONS",
    "FIELD_CONTROLS",
    "NAMESPACE_FIELDS",
    "escape",
    "unescape",
    "namespace_key",
]

"""
どこで: `common` パッケージ。
何を: 環境変数パース・型付き設定・ロギング初期化といった軽量ユーティリティ。
なぜ: engine/api 双方から再利用する共通基盤を分離し、依存の向きを単純化するため。
"""

from .logging import setup_default_logging

__all__ = [
    "setup_default_logging",
]

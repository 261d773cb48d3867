"""
どこで: `engine.io` サブパッケージ（MIDI）。
何を: MIDI デバイス検出/割り当て学習/設定永続化の入口（manager/trainer/device/config_store/service）。
なぜ: 入力デバイス依存を隔離し、ランタイム/アプリから統一 API で参照できるようにするため。
"""

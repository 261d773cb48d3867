"""
どこで: `engine.io` のトレーニング（コントロール割り当ての学習）。
何を: トレーニング中に受信した MIDI メッセージから、該当デバイスのコントロール割り当てを
      追加/更新し、完了コールバックを呼ぶ `MidiDeviceTrainer` を提供する。
なぜ: ユーザーがノブ/パッドを操作するだけで割り当てを作れるようにするため。

注意:
- `midi_devices` はマネージャのデバイス列を参照共有する（コピーしない）。トレーナーは
  既存デバイスの割り当てのみを変更し、列自体の追加/削除/差し替えは行わない。
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from common.settings import get as _get_settings

from .device import MidiDevice, MidiDeviceControl, find_device

logger = logging.getLogger(__name__)

MAX_7BIT_VAL = 127
MAX_14BIT_VAL = 16383
PITCHWHEEL_OFFSET = 8192

TrainedCallback = Callable[[MidiDevice, MidiDeviceControl], None]


def _noop_trained(_device: MidiDevice, _control: MidiDeviceControl) -> None:
    return None


def classify_message(msg: Any) -> Optional[tuple[str, int, Optional[int], float]]:
    """メッセージを (type, channel, number, value) に分類する。

    - control_change: number=control, value=value/127
    - note_on/note_off: type="note", number=note, value=velocity/127
    - pitchwheel: number=None, value=(pitch+8192)/16383
    - それ以外は None（学習対象外）
    """
    mtype = getattr(msg, "type", None)
    channel = int(getattr(msg, "channel", 0))
    if mtype == "control_change":
        return "control_change", channel, int(msg.control), msg.value / MAX_7BIT_VAL
    if mtype in ("note_on", "note_off"):
        return "note", channel, int(msg.note), msg.velocity / MAX_7BIT_VAL
    if mtype == "pitchwheel":
        return "pitchwheel", channel, None, (msg.pitch + PITCHWHEEL_OFFSET) / MAX_14BIT_VAL
    return None


class MidiDeviceTrainer:
    """受信メッセージからコントロール割り当てを作るトレーナー。"""

    def __init__(self) -> None:
        self.midi_devices: list[MidiDevice] = []
        self._on_after_trained: TrainedCallback = _noop_trained
        # 次に学習した割り当てへ付与するアクション名（1 回で解除）
        self.target_action: Optional[str] = None

    @property
    def on_after_trained(self) -> TrainedCallback:
        return self._on_after_trained

    @on_after_trained.setter
    def on_after_trained(self, fn: Optional[TrainedCallback]) -> None:
        self._on_after_trained = fn if fn is not None else _noop_trained

    def arm(self, action: Optional[str]) -> None:
        """次に操作されたコントロールへ `action` を割り当てる。"""
        self.target_action = action

    def train(self, event: Any) -> Optional[MidiDeviceControl]:
        """`MidiInputEvent` 1 件を学習し、更新した割り当てを返す（対象外なら None）。"""
        port_name = getattr(event, "port_name", None)
        device = find_device(self.midi_devices, name=port_name)
        if device is None:
            logger.debug("Ignoring message from unknown port: %s", port_name)
            return None

        classified = classify_message(getattr(event, "message", None))
        if classified is None:
            return None
        ctype, channel, number, value = classified

        control = device.find_control(ctype, channel, number)
        if control is None:
            control = device.add_control(
                MidiDeviceControl(
                    id=device.next_available_control_id(),
                    type=ctype,
                    channel=channel,
                    number=number,
                )
            )
            logger.info(
                "Trained new control #%d on %s: %s ch=%d num=%s",
                control.id,
                device.name,
                ctype,
                channel,
                number,
            )
        control.value = value
        if self.target_action is not None:
            control.action = self.target_action
            self.target_action = None
        if _get_settings().MIDI_DEBUG:
            logger.debug("Control updated: %s", control)

        self._on_after_trained(device, control)
        return control


__all__ = ["MidiDeviceTrainer", "TrainedCallback", "classify_message"]

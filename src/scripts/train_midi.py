"""
Interactive MIDI control training session.

Usage:
    python -m scripts.train_midi --list
    python -m scripts.train_midi --seconds 20 --action filter_cutoff

Opens every known input port, switches the manager into training mode, and
binds each knob/pad touched during the session. Bindings are persisted to the
device store when the session ends.
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from api.midi import setup_midi
from common.logging import setup_default_logging
from engine.io.controller import show_available_ports

logger = logging.getLogger(__name__)

POLL_INTERVAL_SEC = 0.01


def _print_trained(device, control) -> None:
    print(
        f"[{device.name}] #{control.id} {control.type} ch={control.channel} "
        f"num={control.number} value={control.value:.3f} action={control.action}"
    )


async def run_session(seconds: float, action: str | None) -> int:
    manager, service = await setup_midi(True)
    if manager is None:
        logger.error("No MIDI devices available")
        return 2
    try:
        manager.on_trained = _print_trained
        manager.on_saved = lambda: logger.info("Saved bindings to %s", manager.store)
        manager.start_training()
        if action:
            manager.trainer.arm(action)
        logger.info("Training for %.1fs on %d device(s)", seconds, len(manager.midi_devices))
        loop = asyncio.get_running_loop()
        deadline = loop.time() + seconds
        while loop.time() < deadline:
            service.tick()
            await asyncio.sleep(POLL_INTERVAL_SEC)
    finally:
        service.close()
        await manager.stop_training()
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Train MIDI control bindings")
    parser.add_argument("--seconds", type=float, default=10.0, help="session length")
    parser.add_argument("--action", default=None, help="action name for the first touched control")
    parser.add_argument("--list", action="store_true", help="list available ports and exit")
    args = parser.parse_args(argv)

    setup_default_logging()
    if args.list:
        show_available_ports()
        return 0
    return asyncio.run(run_session(args.seconds, args.action))


if __name__ == "__main__":
    raise SystemExit(main())

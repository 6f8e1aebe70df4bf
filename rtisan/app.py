"""Start-up of the system: tasks, two serial streams and a TCP console."""

from __future__ import annotations

import argparse
from typing import Sequence

from rtisan.led import LedBank
from rtisan.stream import Stream
from rtisan.tasks import Scheduler
from rtisan.tcp import TcpStreamBridge, attach

DEFAULT_PORT = 3133


class System:
    """The scheduler, status LEDs and the two serial streams."""

    def __init__(self, port: int = DEFAULT_PORT) -> None:
        self.port = port
        self.scheduler = Scheduler()
        self.leds = LedBank([])
        self.leds.set(0, True)
        self.leds.set(2, True)
        self.streams = [
            Stream(self.scheduler, 1, 193, 193, True),
            Stream(self.scheduler, 1, 257, 257, True),
        ]
        self.bridge: TcpStreamBridge | None = None

    def start(self, ticks: int | None = None) -> None:
        """Bridge the second stream to TCP and run the tick loop."""
        if self.bridge is None:
            self.bridge = attach(self.scheduler, self.streams[1], self.port)
        self.scheduler.run(ticks)


def build_system(port: int = DEFAULT_PORT) -> System:
    """Create a system listening on ``port`` once started."""
    return System(port)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the system from the command line."""
    parser = argparse.ArgumentParser(prog="rtisan")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT,
                        metavar="NUMBER",
                        help="TCP listening number of the console stream")
    parser.add_argument("--ticks", type=int, default=None,
                        help="stop after this many ticks (default: run forever)")
    args = parser.parse_args(argv)
    system = build_system(args.port)
    try:
        system.start(args.ticks)
    finally:
        if system.bridge is not None:
            system.bridge.close()
    return 0
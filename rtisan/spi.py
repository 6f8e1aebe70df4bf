"""Queue of SPI transfers shared between requesting tasks and a bus driver."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Any, Callable

from rtisan.circqueue import QueueFullError
from rtisan.tasks import Lock, Scheduler

MAXNUM_TRANSFERS = 7

StartHandler = Callable[["SpiPeripheral", Any], int]
CompletionHandler = Callable[[int, Any], None]


@dataclass(eq=False)
class SpiTransfer:
    """One chip-selected transfer of ``xfer_len`` bytes."""

    xfer_len: int
    tx: bytes | None = None
    rx: bytearray | None = None
    slave: int = 0
    speed: int = 0
    cpol: bool = False
    cpha: bool = False
    no_deselect: bool = False
    completion_cb: CompletionHandler | None = None
    ctx: Any = None
    completed: bool = False
    dispatched: bool = False
    origin_task: int = 0


class SpiPeripheral:
    """Hands queued transfers to a driver and reports their completion.

    A driver loops on :meth:`transfer_next`, performing each transfer and
    calling :meth:`transfer_completed`, until it gets None.  The start
    handler restarts that loop and must tolerate being called while the
    driver is already running.
    """

    def __init__(self, scheduler: Scheduler, start_handler: StartHandler | None,
                 ctx: Any = None) -> None:
        self.scheduler = scheduler
        self.start_handler = start_handler
        self.ctx = ctx
        self._transfers: deque[SpiTransfer] = deque()
        self._add_lock = Lock()

    def do_transfers(self, transfers: list[SpiTransfer]) -> None:
        """Queue ``transfers`` together and start the driver.

        Raises QueueFullError if they do not all fit.
        """
        task_id = self.scheduler.task_id()
        for transfer in transfers:
            if transfer.xfer_len <= 0:
                raise ValueError("transfer length must be positive")
        for transfer in transfers:
            transfer.origin_task = task_id
            transfer.completed = False
            transfer.dispatched = False
        with self._add_lock:
            if MAXNUM_TRANSFERS - len(self._transfers) < len(transfers):
                raise QueueFullError("SPI transfer queue is full")
            self._transfers.extend(transfers)
            if self.start_handler is not None:
                if self.start_handler(self, self.ctx):
                    raise RuntimeError("SPI start handler failed")

    def transfer_next(self) -> SpiTransfer | None:
        """Take the next queued transfer for the driver, or None."""
        try:
            transfer = self._transfers.popleft()
        except IndexError:
            return None
        if transfer.dispatched or transfer.completed:
            raise RuntimeError("transfer was already dispatched")
        transfer.dispatched = True
        return transfer

    def transfer_completed(self, transfer: SpiTransfer, success: bool = True) -> None:
        """Mark ``transfer`` done and run its completion callback."""
        if not transfer.dispatched:
            raise RuntimeError("transfer was never dispatched")
        if transfer.completed:
            raise RuntimeError("transfer already completed")
        transfer.completed = True
        if transfer.completion_cb is not None:
            transfer.completion_cb(transfer.origin_task, transfer.ctx)


def make_wakeup_callback(scheduler: Scheduler) -> CompletionHandler:
    """Completion callback that wakes the task which queued the transfer."""

    def wakeup(task_id: int, ctx: Any) -> None:
        scheduler.wake(task_id)
        scheduler.resched()

    return wakeup
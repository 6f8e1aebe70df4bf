"""Byte streams with a transmit and a receive queue between tasks and drivers."""

from __future__ import annotations

from typing import Any, Callable

from rtisan.circqueue import CircQueue
from rtisan.tasks import Lock, Scheduler

WakeHandler = Callable[["Stream", Any], None]


class Stream:
    """A pair of circular queues with wake-ups for blocked tasks.

    Tasks call :meth:`send` and :meth:`receive`; a driver drains the
    transmit side with :meth:`get_tx_chunk` or :meth:`tx_region` and fills
    the receive side with :meth:`do_rx_chunk` or :meth:`rx_region`.
    """

    def __init__(self, scheduler: Scheduler, elem_size: int, tx_buf_size: int,
                 rx_buf_size: int, block_until_callbacks: bool = False) -> None:
        if elem_size < 1:
            raise ValueError("element size must be at least 1")
        if not (tx_buf_size or rx_buf_size):
            raise ValueError("a stream needs a transmit or a receive buffer")
        self.scheduler = scheduler
        self.elem_size = elem_size
        self.block_until_callbacks = block_until_callbacks

        self._tx_queue = CircQueue(elem_size, tx_buf_size) if tx_buf_size else None
        self._tx_lock = Lock() if tx_buf_size else None
        self._tx_cb: WakeHandler | None = None
        self._tx_ctx: Any = None
        self._waiting_for_tx = 0

        self._rx_queue = CircQueue(elem_size, rx_buf_size) if rx_buf_size else None
        self._rx_lock = Lock() if rx_buf_size else None
        self._rx_cb: WakeHandler | None = None
        self._rx_ctx: Any = None
        self._waiting_for_rx = 0

    def _tx(self) -> CircQueue:
        if self._tx_queue is None:
            raise RuntimeError("stream has no transmit queue")
        return self._tx_queue

    def _rx(self) -> CircQueue:
        if self._rx_queue is None:
            raise RuntimeError("stream has no receive queue")
        return self._rx_queue

    def _wake(self, task_id: int) -> None:
        if task_id and self.scheduler.wake(task_id):
            self.scheduler.resched()

    # Task side

    def send(self, data: bytes, block: bool = True) -> int:
        """Queue ``data`` for transmission; return the elements queued.

        When blocking, waits until everything is queued (and, with
        ``block_until_callbacks``, until a transmit callback is attached).
        """
        queue = self._tx()
        view = memoryview(data).cast("B")
        total = view.nbytes // self.elem_size
        size = self.elem_size
        done = 0
        with self._tx_lock:
            while True:
                wake_count = 0
                if block:
                    self._waiting_for_tx = self.scheduler.task_id()
                    wake_count = self.scheduler.wake_count()
                done += queue.write(view[done * size:total * size])
                if self._tx_cb is not None:
                    self._tx_cb(self, self._tx_ctx)
                if not block:
                    break
                if ((not self.block_until_callbacks or self._tx_cb is not None)
                        and done >= total):
                    self._waiting_for_tx = 0
                    break
                self.scheduler.wait(wake_count + 1)
        return done

    def receive(self, length: int, block: bool = True, all_: bool = False) -> bytes:
        """Take up to ``length`` elements from the receive queue.

        When blocking, waits for at least one element, or for all
        ``length`` of them when ``all_`` is set.
        """
        queue = self._rx()
        chunks = []
        done = 0
        with self._rx_lock:
            while True:
                wake_count = 0
                if block:
                    self._waiting_for_rx = self.scheduler.task_id()
                    wake_count = self.scheduler.wake_count()
                got = queue.read(length - done)
                chunks.append(got)
                done += len(got) // self.elem_size
                if self._rx_cb is not None:
                    self._rx_cb(self, self._rx_ctx)
                if not block or done >= length or (not all_ and done):
                    self._waiting_for_rx = 0
                    break
                self.scheduler.wait(wake_count + 1)
        return b"".join(chunks)

    # Driver side, transmit

    def get_tx_chunk(self, length: int) -> bytes:
        """Remove up to ``length`` elements queued for transmission."""
        data = self._tx().read(length)
        self._wake(self._waiting_for_tx)
        return data

    def set_tx_callback(self, cb: WakeHandler | None, ctx: Any = None) -> None:
        """Attach the handler called whenever data is queued to transmit."""
        self._tx()
        self._tx_ctx = ctx
        self._tx_cb = cb
        # A sender may have been waiting for a handler to exist.
        self._wake(self._waiting_for_tx)

    def tx_region(self) -> memoryview:
        """Contiguous bytes waiting to be transmitted (empty when none)."""
        region = self._tx().read_region()
        return region if region is not None else memoryview(b"")

    def tx_done(self, count: int) -> None:
        """Release ``count`` elements obtained from :meth:`tx_region`."""
        self._tx().read_done(count)
        self._wake(self._waiting_for_tx)

    # Driver side, receive

    def rx_available(self) -> int:
        """Elements of free space in the receive queue."""
        return self._rx().write_space()[1]

    def do_rx_chunk(self, data: bytes) -> int:
        """Store received ``data``; return how many elements fitted."""
        stored = self._rx().write(data)
        self._wake(self._waiting_for_rx)
        return stored

    def set_rx_callback(self, cb: WakeHandler | None, ctx: Any = None) -> None:
        """Attach the handler called whenever received data is consumed."""
        self._rx()
        self._rx_ctx = ctx
        self._rx_cb = cb
        self._wake(self._waiting_for_rx)

    def rx_region(self) -> memoryview:
        """Writable contiguous free space in the receive queue."""
        return self._rx().write_region()

    def rx_done(self, count: int) -> None:
        """Commit ``count`` elements written through :meth:`rx_region`."""
        self._rx().write_advance(count)
        self._wake(self._waiting_for_rx)
"""Carries a stream's bytes over a TCP connection."""

from __future__ import annotations

import socket

from rtisan.stream import Stream
from rtisan.tasks import Scheduler, Task

TCP_TASK_PRIORITY = 40
_ACCEPT_POLL_SECONDS = 0.1


class TcpStreamBridge:
    """Listens on ``port``; moves bytes between one client and a stream.

    Received bytes go into the stream's receive queue; bytes queued for
    transmission are sent to the client.  When the client hangs up, the
    next client is accepted.
    """

    def __init__(self, scheduler: Scheduler, stream: Stream, port: int) -> None:
        if stream.elem_size != 1:
            raise ValueError("TCP bridging needs a stream of single bytes")
        self.scheduler = scheduler
        self.stream = stream
        self._conn: socket.socket | None = None
        self._closed = False
        self.task: Task | None = None
        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            listener.bind(("", port))
            listener.listen(1)
        except OSError:
            listener.close()
            raise
        listener.settimeout(_ACCEPT_POLL_SECONDS)
        self._listener = listener
        self.port = listener.getsockname()[1]

    @property
    def connected(self) -> bool:
        """Whether a client is currently connected."""
        return self._conn is not None

    def _accept(self) -> bool:
        while not self._closed:
            try:
                conn, _ = self._listener.accept()
            except socket.timeout:
                continue
            except OSError:
                if self._closed:
                    return False
                raise
            conn.setblocking(False)
            self._conn = conn
            return True
        return False

    def _drop(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def pump(self) -> bool:
        """Move whatever data is ready in each direction; return whether any moved.

        Blocks waiting for a client when none is connected.
        """
        if self._closed:
            return False
        if self._conn is None and not self._accept():
            return False
        conn = self._conn
        did_something = False

        region = self.stream.rx_region()
        if len(region):
            try:
                count = conn.recv_into(region)
            except (BlockingIOError, InterruptedError):
                count = None
            except OSError:
                self._drop()
                return did_something
            if count == 0:
                self._drop()
                return did_something
            if count:
                did_something = True
                self.stream.rx_done(count)

        pending = self.stream.tx_region()
        if len(pending):
            try:
                count = conn.send(pending)
            except (BlockingIOError, InterruptedError):
                count = 0
            except OSError:
                self._drop()
                return did_something
            if count > 0:
                did_something = True
                self.stream.tx_done(count)

        return did_something

    def run(self) -> None:
        """Pump until closed, resting a tick between passes."""
        while not self._closed:
            self.pump()
            if self._closed:
                break
            self.scheduler.sleep(1)

    def close(self) -> None:
        """Stop listening and drop any client."""
        self._closed = True
        self._drop()
        self._listener.close()


def attach(scheduler: Scheduler, stream: Stream, port: int) -> TcpStreamBridge:
    """Bridge ``stream`` to TCP ``port`` on a task of its own."""
    bridge = TcpStreamBridge(scheduler, stream, port)
    bridge.task = scheduler.create_task(TCP_TASK_PRIORITY, lambda _: bridge.run())
    return bridge
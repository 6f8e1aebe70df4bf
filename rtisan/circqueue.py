"""Single-producer, single-consumer circular queue of fixed-size elements."""

from __future__ import annotations

_U16_MAX = 0xFFFF


class QueueFullError(Exception):
    """Raised when advancing the write head would catch up with the reader."""


class CircQueue:
    """A ring buffer of ``num_elem`` slots, each ``elem_size`` bytes wide.

    One slot is always kept empty to tell "full" from "empty", so at most
    ``num_elem - 1`` elements can be queued at once.  The writer owns the
    write head and the reader owns the read tail; each side reads the other
    side's position once per operation, so one writer and one reader may
    run concurrently.
    """

    def __init__(self, elem_size: int, num_elem: int) -> None:
        if not 0 < elem_size <= _U16_MAX:
            raise ValueError(f"element size must be in 1..{_U16_MAX}")
        if not 2 <= num_elem <= _U16_MAX:
            raise ValueError(f"element count must be in 2..{_U16_MAX}")
        self.elem_size = elem_size
        self.num_elem = num_elem
        self._contents = bytearray(elem_size * num_elem)
        self._write_head = 0
        self._read_tail = 0

    @property
    def capacity(self) -> int:
        """Most elements the queue can hold at once."""
        return self.num_elem - 1

    def __len__(self) -> int:
        return self.read_space()[1]

    def _advance(self, position: int, amount: int) -> int:
        if not 0 <= position < self.num_elem:
            raise ValueError("position outside the queue")
        if not 0 <= amount <= self.num_elem:
            raise ValueError(f"cannot advance by {amount} elements")
        position += amount
        if position >= self.num_elem:
            position -= self.num_elem
        return position

    def _view(self, start: int, count: int) -> memoryview:
        size = self.elem_size
        return memoryview(self._contents)[start * size:(start + count) * size]

    # Writer side

    def write_space(self) -> tuple[int, int]:
        """Return ``(contiguous, available)`` element counts for writing.

        ``contiguous`` elements may be filled in at :meth:`write_region` and
        committed in one :meth:`write_advance`; ``available`` also counts
        the space past the wrap-around.
        """
        wr_head = self._write_head
        rd_tail = self._read_tail
        if rd_tail <= wr_head:
            # The head may not wrap onto a tail sitting exactly at zero.
            offset = 1 if rd_tail == 0 else 0
            contig = self.num_elem - wr_head - offset
            avail = self.num_elem - wr_head + rd_tail - 1
        else:
            contig = avail = rd_tail - wr_head - 1
        return contig, avail

    def write_region(self) -> memoryview:
        """Writable view of the contiguous free slots at the write head."""
        contig, _ = self.write_space()
        return self._view(self._write_head, contig)

    def write_advance(self, amount: int) -> None:
        """Hand ``amount`` filled-in elements over to the reader.

        Raises :class:`QueueFullError` if the head would meet the tail; the
        written data stays in place and the advance may be retried.
        """
        if amount == 0:
            return
        new_head = self._advance(self._write_head, amount)
        if new_head == self._read_tail:
            raise QueueFullError("circular queue is full")
        self._write_head = new_head

    def write(self, data) -> int:
        """Copy whole elements from ``data`` in; return how many fitted."""
        source = memoryview(data).cast("B")
        if source.nbytes % self.elem_size:
            raise ValueError("data is not a whole number of elements")
        num = source.nbytes // self.elem_size
        size = self.elem_size
        total = 0
        while True:
            contig, _ = self.write_space()
            if not contig:
                break
            put = min(contig, num - total)
            region = self._view(self._write_head, put)
            region[:] = source[total * size:(total + put) * size]
            self.write_advance(put)
            total += put
            if total >= num:
                break
        return total

    # Reader side

    def read_space(self) -> tuple[int, int]:
        """Return ``(contiguous, available)`` element counts for reading."""
        rd_tail = self._read_tail
        wr_head = self._write_head
        if wr_head >= rd_tail:
            contig = avail = wr_head - rd_tail
        else:
            contig = self.num_elem - rd_tail
            avail = self.num_elem - rd_tail + wr_head
        return contig, avail

    def read_region(self) -> memoryview | None:
        """View of the contiguous readable elements, or None when empty."""
        contig, _ = self.read_space()
        if contig == 0:
            return None
        return self._view(self._read_tail, contig)

    def read_done(self, count: int = 1) -> None:
        """Release ``count`` elements obtained through :meth:`read_region`."""
        if count == 0:
            return
        orig_tail = self._read_tail
        if orig_tail == self._write_head:
            raise ValueError("nothing to release: queue is empty")
        new_tail = self._advance(orig_tail, count)
        if not (new_tail > orig_tail or new_tail == 0):
            raise ValueError("released past the end of the readable region")
        self._read_tail = new_tail

    def read(self, count: int) -> bytes:
        """Remove up to ``count`` elements and return their bytes."""
        if count < 0:
            raise ValueError("count must not be negative")
        chunks = []
        total = 0
        while True:
            contig, _ = self.read_space()
            if not contig:
                break
            take = min(contig, count - total)
            chunks.append(bytes(self._view(self._read_tail, take)))
            self.read_done(take)
            total += take
            if total >= count:
                break
        return b"".join(chunks)

    def clear(self) -> None:
        """Drop every queued element."""
        self._read_tail = self._write_head
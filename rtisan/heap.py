"""Bump allocator over a fixed arena; memory is never given back."""

from __future__ import annotations

import threading

_DEFAULT_ALIGNMENT = 8


class BumpHeap:
    """A heap that hands out offsets into ``memory`` by moving a pointer."""

    def __init__(self, size: int) -> None:
        if size < 0:
            raise ValueError("heap size must not be negative")
        self.size = size
        self.memory = bytearray(size)
        self._pos = 0
        self._lock = threading.Lock()

    def free(self) -> int:
        """Bytes not yet handed out."""
        return self.size - self._pos

    def aligned_alloc(self, alignment: int, size: int) -> int:
        """Reserve ``size`` bytes, rounded up to ``alignment``; return the offset.

        Raises MemoryError when the arena is exhausted.
        """
        if size < 0:
            raise ValueError("allocation size must not be negative")
        if alignment == 0:
            alignment = 1
        if alignment < 0 or alignment & (alignment - 1):
            raise ValueError("alignment must be a power of two")
        fudge = size & (alignment - 1)
        if fudge:
            size += alignment - fudge
        with self._lock:
            offset = self._pos
            new_pos = offset + size
            if new_pos > self.size:
                raise MemoryError(
                    f"heap exhausted: {size} bytes requested, {self.free()} free"
                )
            self._pos = new_pos
        return offset

    def malloc(self, size: int) -> int:
        """Reserve ``size`` bytes with the default 8-byte rounding."""
        return self.aligned_alloc(_DEFAULT_ALIGNMENT, size)

    def calloc(self, nmemb: int, size: int) -> int:
        """Reserve ``nmemb * size`` zeroed bytes."""
        full_size = nmemb * size
        offset = self.malloc(full_size)
        self.memory[offset:offset + full_size] = bytes(full_size)
        return offset
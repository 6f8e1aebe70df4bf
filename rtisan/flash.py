"""Flash memory kept in a file, addressed like the on-chip flash."""

from __future__ import annotations

import logging
import os
import struct
from typing import Sequence

FLASH_SIZE = 262144
FLASH_PAGE_SIZE = 2048
FLASH_BASE = 0x08000000

_log = logging.getLogger(__name__)


class FileFlash:
    """Half-word flash backed by a file that is created on first use."""

    def __init__(self, path: str | os.PathLike = "theflash.bin",
                 size: int = FLASH_SIZE, page_size: int = FLASH_PAGE_SIZE) -> None:
        if size <= 0 or page_size <= 0 or page_size % 2:
            raise ValueError("sizes must be positive and page size even")
        self.path = os.fspath(path)
        self.size = size
        self.page_size = page_size
        self._fd: int | None = None

    def _open(self) -> int:
        if self._fd is None:
            fd = os.open(self.path, os.O_RDWR | os.O_CREAT, 0o600)
            try:
                os.ftruncate(fd, self.size)
            except OSError:
                os.close(fd)
                raise
            self._fd = fd
        return self._fd

    def _position(self, address: int, count: int) -> int:
        if count < 0:
            raise ValueError("word count must not be negative")
        pos = address - FLASH_BASE if address > FLASH_BASE else address
        if not 0 <= pos < self.size:
            raise ValueError(f"address {address:#x} outside the flash")
        if pos + count * 2 >= self.size:
            raise ValueError("access runs past the end of the flash")
        return pos

    def read(self, address: int, count: int) -> list[int]:
        """Read ``count`` 16-bit words starting at ``address``."""
        _log.debug("read %#x %d", address, count)
        fd = self._open()
        pos = self._position(address, count)
        os.lseek(fd, pos, os.SEEK_SET)
        data = os.read(fd, count * 2)
        if len(data) != count * 2:
            raise OSError(f"short read from {self.path}")
        return list(struct.unpack(f"<{count}H", data))

    def program(self, address: int, words: Sequence[int]) -> None:
        """Write 16-bit ``words`` starting at ``address``."""
        _log.debug("program %#x %d", address, len(words))
        fd = self._open()
        pos = self._position(address, len(words))
        try:
            data = struct.pack(f"<{len(words)}H", *words)
        except struct.error as exc:
            raise ValueError("words must be in 0..0xffff") from exc
        os.lseek(fd, pos, os.SEEK_SET)
        view = memoryview(data)
        while view:
            written = os.write(fd, view)
            view = view[written:]

    def erase_page(self, address: int) -> None:
        """Set the page starting at ``address`` to all ones."""
        _log.debug("erase %#x", address)
        self.program(address, [0xFFFF] * (self.page_size // 2))

    def close(self) -> None:
        """Close the backing file."""
        if self._fd is not None:
            os.close(self._fd)
            self._fd = None

    def __enter__(self) -> FileFlash:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
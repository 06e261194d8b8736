"""Accumulation of a transaction blob sent over several chunks."""

from __future__ import annotations

RAM_BUFFER_SIZE = 8192
FLASH_BUFFER_SIZE = 16384


class TxBuffer:
    """A bounded byte buffer that collects transaction chunks.

    Appends are all-or-nothing: a chunk that does not fit in the remaining
    capacity is rejected and the buffer is left unchanged.
    """

    def __init__(self, capacity: int = FLASH_BUFFER_SIZE):
        if capacity < 0:
            raise ValueError("capacity must not be negative")
        self.capacity = capacity
        self._data = bytearray()

    def reset(self) -> None:
        """Discard everything collected so far."""
        self._data.clear()

    def append(self, data) -> int:
        """Append ``data`` and return the number of bytes added.

        Raises :class:`OverflowError` when the chunk does not fit.
        """
        chunk = bytes(data)
        if len(self._data) + len(chunk) > self.capacity:
            raise OverflowError(
                f"chunk of {len(chunk)} bytes does not fit "
                f"({self.capacity - len(self._data)} bytes free)"
            )
        self._data.extend(chunk)
        return len(chunk)

    @property
    def data(self) -> bytes:
        """The bytes collected so far."""
        return bytes(self._data)

    @property
    def remaining(self) -> int:
        """Free space left in the buffer."""
        return self.capacity - len(self._data)

    def __bytes__(self) -> bytes:
        return self.data

    def __len__(self) -> int:
        return len(self._data)
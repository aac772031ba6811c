from __future__ import annotations

import threading
from array import array


class AudioRingBuffer:
    """Fixed-capacity FIFO of interleaved int16 frames.

    Writes never overwrite unread data: frames beyond the free space are
    dropped and the accepted count is returned. Reads return at most the
    frames available. Safe for one producer and one consumer thread.
    """

    def __init__(self, capacity_frames: int, channels: int = 2) -> None:
        if capacity_frames <= 0 or channels <= 0:
            raise ValueError("capacity_frames and channels must be > 0")
        self.capacity_frames = int(capacity_frames)
        self.channels = int(channels)
        self._data = array("h", bytes(2 * self.capacity_frames * self.channels))
        self._head = 0
        self._tail = 0
        self._size = 0
        self._lock = threading.Lock()

    def size(self) -> int:
        with self._lock:
            return self._size

    def space(self) -> int:
        with self._lock:
            return self.capacity_frames - self._size

    def clear(self) -> None:
        with self._lock:
            self._head = 0
            self._tail = 0
            self._size = 0

    def write(self, frames: array) -> int:
        """Append interleaved samples; returns the number of frames accepted."""
        if not isinstance(frames, array) or frames.typecode != "h":
            frames = array("h", frames)
        ch = self.channels
        count = len(frames) // ch
        with self._lock:
            to_write = min(count, self.capacity_frames - self._size)
            src = 0
            remaining = to_write
            pos = self._head
            while remaining > 0:
                run = min(remaining, self.capacity_frames - pos)
                self._data[pos * ch : (pos + run) * ch] = frames[src * ch : (src + run) * ch]
                pos = (pos + run) % self.capacity_frames
                src += run
                remaining -= run
            self._head = pos
            self._size += to_write
        return to_write

    def read(self, max_frames: int) -> array:
        """Pop up to ``max_frames`` frames as an interleaved array."""
        ch = self.channels
        with self._lock:
            to_read = min(max(0, int(max_frames)), self._size)
            out = array("h")
            remaining = to_read
            pos = self._tail
            while remaining > 0:
                run = min(remaining, self.capacity_frames - pos)
                out.extend(self._data[pos * ch : (pos + run) * ch])
                pos = (pos + run) % self.capacity_frames
                remaining -= run
            self._tail = pos
            self._size -= to_read
        return out

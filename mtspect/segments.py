"""Fixed-length, overlapping windows over a 1-D signal."""
from __future__ import annotations
from typing import Iterator, NamedTuple
import numpy as np

from .errors import InvalidParameter

__all__ = ["Segment", "Segments", "segment_count", "segment_offsets"]


class Segment(NamedTuple):
    index: int
    offset: int
    data: np.ndarray


def segment_offsets(length: int, n: int, step: int,
                    pad_trailing: bool = False) -> np.ndarray:
    """Start offsets ``0, step, 2*step, ...`` of every emitted window."""
    if length >= n:
        offsets = np.arange(0, length - n + 1, step, dtype=np.int64)
    else:
        offsets = np.empty(0, dtype=np.int64)
    if pad_trailing:
        nxt = offsets[-1] + step if offsets.size else 0
        if nxt < length:
            offsets = np.append(offsets, np.int64(nxt))
    return offsets


def segment_count(length: int, n: int, step: int,
                  pad_trailing: bool = False) -> int:
    return len(segment_offsets(length, n, step, pad_trailing))


class Segments:
    """Restartable sequence of windows of ``n`` samples, ``step`` apart.

    Windows are emitted while ``offset + n <= len(signal)``. With
    ``pad_trailing`` one extra zero-padded window is emitted at the next
    offset if it still falls inside the signal.
    """

    def __init__(self, signal: np.ndarray, n: int, step: int,
                 pad_trailing: bool = False):
        if n < 1:
            raise InvalidParameter(f"window length must be >= 1 sample, got {n}")
        if step <= 0:
            raise InvalidParameter(f"step must be >= 1 sample, got {step}")
        self.signal = np.asarray(signal)
        if self.signal.ndim != 1:
            raise InvalidParameter(f"signal must be 1-D, got shape {self.signal.shape}")
        self.n, self.step = int(n), int(step)
        self.pad_trailing = bool(pad_trailing)
        self.offsets = segment_offsets(len(self.signal), self.n, self.step,
                                       self.pad_trailing)
        if self.offsets.size == 0:
            raise InvalidParameter(
                f"signal of {len(self.signal)} samples is shorter than the "
                f"{self.n}-sample window; no segments (enable trailing padding "
                f"or shorten the window)")

    def __len__(self) -> int:
        return len(self.offsets)

    def __iter__(self) -> Iterator[Segment]:
        view = self.signal.view()
        view.flags.writeable = False
        for i, off in enumerate(self.offsets):
            off = int(off)
            chunk = view[off:off + self.n]
            if len(chunk) < self.n:
                chunk = np.concatenate(
                    [chunk, np.zeros(self.n - len(chunk), dtype=chunk.dtype)])
            yield Segment(i, off, chunk)

    def valid_lengths(self, rows: slice = slice(None)) -> np.ndarray:
        """Number of real (non-padding) samples in each window."""
        return np.minimum(self.n, len(self.signal) - self.offsets[rows])

    def matrix(self, rows: slice = slice(None)) -> np.ndarray:
        """Copy a block of windows into a ``(b, n)`` array."""
        offsets = self.offsets[rows]
        idx = offsets[:, None] + np.arange(self.n)
        need = int(idx.max()) + 1 if idx.size else 0
        data = self.signal
        if need > len(data):
            data = np.concatenate([data, np.zeros(need - len(data), dtype=data.dtype)])
        return data[idx]

"""Stack per-segment spectra into a spectrogram with its time/frequency axes."""
from __future__ import annotations
from typing import Sequence, Tuple, Union
import numpy as np

from .errors import DimensionMismatch, InvalidParameter
from .spect import frequencies, n_bins

__all__ = ["assemble", "time_axis", "band_mask"]


def time_axis(n_segments: int, fs: float, n: int, step: int) -> np.ndarray:
    """Window-centre times in seconds."""
    return (np.arange(n_segments) * step + n / 2) / fs


def assemble(rows: Union[np.ndarray, Sequence[np.ndarray]], fs: float, n: int,
             step: int, nfft: int, sides: str = "onesided"
             ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Return ``(spect, stimes, sfreqs)``; ``spect`` is ``(T, F)``, rows in time order.

    A row whose length is not the number of frequency bins implied by
    ``nfft``/``sides`` raises :class:`DimensionMismatch`.
    """
    F = n_bins(nfft, sides)
    T = len(rows)
    spect = np.empty((T, F))
    for t in range(T):
        row = np.asarray(rows[t])
        if row.shape != (F,):
            raise DimensionMismatch(
                f"segment {t}: spectrum has shape {row.shape}, expected ({F},)")
        spect[t] = row
    return spect, time_axis(T, fs, n, step), frequencies(fs, nfft, sides)


def band_mask(sfreqs: np.ndarray, frequency_range) -> np.ndarray:
    """Boolean column selector for ``fmin <= f <= fmax``."""
    fmin, fmax = frequency_range
    if fmin >= fmax:
        raise InvalidParameter(f"frequency range needs fmin < fmax, got [{fmin}, {fmax}]")
    return (sfreqs >= fmin) & (sfreqs <= fmax)

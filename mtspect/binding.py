"""Fixed-arity entry point: 9 inputs in, up to 3 outputs out.

The argument order is that of the compiled ``multitaper_spectrogram_coder``
call, so code written against it can switch to this module unchanged::

    spect, stimes, sfreqs = multitaper_spectrogram_coder(
        data, fs, window_length, window_step, time_bandwidth, num_tapers,
        min_nfft, frequency_range, weighting)
"""
from __future__ import annotations
import numpy as np

from .engine import multitaper_spectrogram
from .errors import InvalidParameter

__all__ = ["N_INPUTS", "N_OUTPUTS", "multitaper_spectrogram_coder"]

N_INPUTS = 9
N_OUTPUTS = 3


def _default(value):
    """``None`` and empty arrays stand for "use the default"."""
    if value is None or np.size(value) == 0:
        return None
    return value


def multitaper_spectrogram_coder(*args, nargout: int = N_OUTPUTS, order: str = "C"):
    """Return the first ``nargout`` of ``(spect, stimes, sfreqs)``.

    ``order='F'`` returns the spectrogram in column-major layout. ``nargout=0``
    still returns the spectrogram.
    """
    if len(args) != N_INPUTS:
        raise InvalidParameter(f"expected {N_INPUTS} input arguments, got {len(args)}")
    if not 0 <= nargout <= N_OUTPUTS:
        raise InvalidParameter(f"at most {N_OUTPUTS} outputs available, {nargout} requested")
    if order not in ("C", "F"):
        raise InvalidParameter(f"order must be 'C' or 'F', got {order!r}")
    (data, fs, window_length, window_step, time_bandwidth,
     num_tapers, min_nfft, frequency_range, weighting) = args

    num_tapers = _default(num_tapers)
    min_nfft = _default(min_nfft)
    frequency_range = _default(frequency_range)
    if num_tapers is not None:
        num_tapers = np.ravel(num_tapers)[0]
    if min_nfft is not None:
        min_nfft = np.ravel(min_nfft)[0]
    if isinstance(weighting, np.ndarray):
        weighting = weighting.item()

    spect, stimes, sfreqs = multitaper_spectrogram(
        data, np.ravel(fs)[0], np.ravel(window_length)[0], np.ravel(window_step)[0],
        np.ravel(time_bandwidth)[0], num_tapers, min_nfft, frequency_range,
        weighting)
    if order == "F":
        spect = np.asfortranarray(spect)
    return (spect, stimes, sfreqs)[:max(nargout, 1)]

import math
import numpy as np
from scipy.signal import detrend as _detrend

from .errors import InvalidParameter
"""
Tapered periodograms: taper, zero-pad, FFT, squared magnitude.

"""
__all__ = ["fft_length", "frequencies", "n_bins", "tapered_power",
           "fold_onesided", "estimate", "detrend_segments", "nanpow2db"]

SIDES = ("onesided", "twosided")
DETRENDS = ("linear", "constant", "off")


def fft_length(n: int, min_nfft: int = 0, pow2: bool = False) -> int:
    """Transform length for an ``n``-sample window.

    No padding unless asked: ``max(n, min_nfft)``, rounded up to a power of
    two with ``pow2``.
    """
    nfft = max(int(n), int(min_nfft or 0))
    if pow2:
        nfft = 2 ** math.ceil(math.log2(nfft))
    return int(nfft)


def n_bins(nfft: int, sides: str = "onesided") -> int:
    return nfft // 2 + 1 if sides == "onesided" else nfft


def frequencies(fs: float, nfft: int, sides: str = "onesided") -> np.ndarray:
    return np.arange(n_bins(nfft, sides)) * (fs / nfft)


def tapered_power(segments: np.ndarray, tapers: np.ndarray, nfft: int,
                  sides: str = "onesided") -> np.ndarray:
    """|FFT(segment * taper)|^2 for every (segment, taper) pair.

    segments : (b, n) or (n,)
    tapers   : (n, k)
    returns  : (b, k, F) raw power, not folded
    """
    segs = np.atleast_2d(segments)
    if segs.shape[1] != tapers.shape[0]:
        raise InvalidParameter(
            f"segment length {segs.shape[1]} != taper length {tapers.shape[0]}")
    if nfft < segs.shape[1]:
        raise InvalidParameter(f"nfft={nfft} is shorter than the window ({segs.shape[1]})")
    mtY = segs[:, None, :] * tapers.T[None, :, :]          # (b, k, n)
    if sides == "onesided":
        if np.iscomplexobj(mtY):
            raise InvalidParameter("one-sided spectra need a real-valued signal")
        fY = np.fft.rfft(mtY, n=nfft, axis=-1)
    elif sides == "twosided":
        fY = np.fft.fft(mtY, n=nfft, axis=-1)
    else:
        raise InvalidParameter(f"sides must be one of {SIDES}, got {sides!r}")
    return fY.real**2 + fY.imag**2


def fold_onesided(power: np.ndarray, nfft: int) -> np.ndarray:
    """Double the bins whose negative-frequency twin was dropped (not DC/Nyquist)."""
    out = np.array(power, dtype=np.float64, copy=True)
    stop = out.shape[-1] - 1 if nfft % 2 == 0 else out.shape[-1]
    out[..., 1:stop] *= 2.0
    return out


def estimate(segment: np.ndarray, taper: np.ndarray, nfft: int | None = None,
             sides: str = "onesided") -> np.ndarray:
    """Power spectrum of one segment under one taper."""
    segment = np.asarray(segment)
    taper = np.asarray(taper, dtype=np.float64)
    if segment.ndim != 1 or taper.shape != segment.shape:
        raise InvalidParameter(
            f"segment {segment.shape} and taper {taper.shape} must be equal-length 1-D")
    nfft = len(segment) if nfft is None else int(nfft)
    power = tapered_power(segment[None, :], taper[:, None], nfft, sides)[0, 0]
    return fold_onesided(power, nfft) if sides == "onesided" else power


def detrend_segments(rows: np.ndarray, detrend: str = "linear") -> np.ndarray:
    if detrend == "off":
        return rows
    if detrend not in DETRENDS:
        raise InvalidParameter(f"detrend must be one of {DETRENDS}, got {detrend!r}")
    return _detrend(rows, axis=-1, type=detrend)


def nanpow2db(y):
    """Power to dB; zeros (and negatives) become NaN."""
    y = np.asarray(y, dtype=np.float64)
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.where(y > 0, 10 * np.log10(np.where(y > 0, y, 1.0)), np.nan)

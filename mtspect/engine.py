"""
Multitaper spectrogram engine.

    spect, stimes, sfreqs = multitaper_spectrogram(data, fs, 4, 1, 3, 5)

computes, for every window of ``data``:

    1. DPSS tapers for the window length and NW (once per call)
    2. the tapered windows' periodograms
    3. their combination across tapers ('unity', 'eigen' or 'adapt')

and stacks the windows into a (T, F) one-sided PSD, in signal units^2/Hz.
"""
from __future__ import annotations
import math
import timeit
import warnings
from dataclasses import dataclass
from typing import Optional, Tuple
import numpy as np
from joblib import Parallel, delayed

from .assemble import assemble, band_mask
from .errors import InvalidParameter, MultitaperWarning
from .segments import Segments, segment_count
from .spect import (SIDES, detrend_segments, fft_length, fold_onesided,
                    frequencies, n_bins, tapered_power)
from .tapers import TaperSet, default_taper_count, dpss_tapers
from .weights import combine, normalize_weighting

__all__ = ["SpectrogramParams", "resolve_params", "multitaper_spectrogram"]

_DETRENDS = {"linear": "linear", "constant": "constant", "const": "constant",
             "off": "off", "none": "off", "false": "off"}


@dataclass(frozen=True)
class SpectrogramParams:
    """Validated, sample-domain parameters of one spectrogram call."""

    fs: float
    n_window: int
    n_step: int
    time_bandwidth: float
    n_tapers: int
    nfft: int
    frequency_range: Tuple[float, float]
    weighting: str
    detrend: str
    sides: str
    pad_trailing: bool

    @property
    def window_length(self) -> float:
        return self.n_window / self.fs

    @property
    def window_step(self) -> float:
        return self.n_step / self.fs

    @property
    def spectral_resolution(self) -> float:
        return 2 * self.time_bandwidth / self.window_length

    def describe(self) -> str:
        fmin, fmax = self.frequency_range
        return "\n".join([
            "Multitaper Spectrogram Properties:",
            f"     Spectral Resolution: {self.spectral_resolution:g}Hz",
            f"     Window Length: {self.window_length:g}s",
            f"     Window Step: {self.window_step:g}s",
            f"     Time Half-Bandwidth Product: {self.time_bandwidth:g}",
            f"     Number of Tapers: {self.n_tapers}",
            f"     Frequency Range: {fmin:g}-{fmax:g}Hz",
            f"     NFFT: {self.nfft}",
            f"     Weighting: {self.weighting}",
            f"     Detrend: {self.detrend}",
        ])


def _as_signal(data) -> np.ndarray:
    x = np.asarray(data)
    if x.ndim == 2 and 1 in x.shape:        # row or column vector
        x = x.ravel()
    if x.ndim != 1:
        raise InvalidParameter(f"data must be 1-D (n,), got shape {x.shape}")
    if x.size == 0:
        raise InvalidParameter("data is empty")
    try:
        x = x.astype(np.complex128 if np.iscomplexobj(x) else np.float64, copy=False)
    except (TypeError, ValueError) as e:
        raise InvalidParameter(f"data must be numeric: {e}") from e
    if not np.all(np.isfinite(x)):
        raise InvalidParameter("data contains NaN or Inf samples")
    return x


def _positive(value, name: str) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidParameter(f"{name} must be a number, got {value!r}") from e
    if not np.isfinite(value) or value <= 0:
        raise InvalidParameter(f"{name} must be > 0, got {value}")
    return value


def _to_samples(seconds, fs: float, name: str) -> int:
    seconds = _positive(seconds, name)
    exact = seconds * fs
    samples = int(round(exact))
    if samples < 1:
        raise InvalidParameter(
            f"{name} of {seconds}s is shorter than one sample at fs={fs}Hz")
    if not math.isclose(samples, exact, rel_tol=0.0, abs_tol=1e-9):
        warnings.warn(
            f"{name} is not a whole number of samples; using {samples / fs:g}s",
            MultitaperWarning, stacklevel=3)
    return samples


def _as_count(value, name: str, minimum: int) -> int:
    try:
        ok = not isinstance(value, bool) and int(value) == value and value >= minimum
    except (TypeError, ValueError):
        ok = False
    if not ok:
        raise InvalidParameter(f"{name} must be an integer >= {minimum}, got {value!r}")
    return int(value)


def resolve_params(data, fs, window_length=5.0, window_step=1.0,
                   time_bandwidth=5.0, num_tapers=None, min_nfft=0,
                   frequency_range=None, weighting="unity", *,
                   detrend="linear", pad_trailing=False, pow2=False,
                   sides=None) -> SpectrogramParams:
    """Validate every argument up front; raise InvalidParameter on the first bad one."""
    x = _as_signal(data)
    fs = _positive(fs, "sampling rate")
    n_window = _to_samples(window_length, fs, "window length")
    n_step = _to_samples(window_step, fs, "window step")
    if not pad_trailing:
        if n_step > len(x):
            raise InvalidParameter(
                f"window step ({n_step} samples) exceeds the signal length "
                f"({len(x)} samples); no segments")
        if n_window > len(x):
            raise InvalidParameter(
                f"data length ({len(x)}) is shorter than the window ({n_window} "
                f"samples); shorten the window or enable trailing padding")
    if segment_count(len(x), n_window, n_step, pad_trailing) == 0:
        raise InvalidParameter(
            f"no {n_window}-sample window fits a {len(x)}-sample signal")

    tw = _positive(time_bandwidth, "time-bandwidth product")
    if n_window > 1 and tw >= n_window / 2:
        raise InvalidParameter(
            f"time-bandwidth product {tw} must be less than half the window "
            f"({n_window / 2} samples)")
    k = default_taper_count(tw) if num_tapers is None else \
        _as_count(num_tapers, "number of tapers", 1)
    if k > n_window:
        raise InvalidParameter(f"{k} tapers requested for a {n_window}-sample window")

    min_nfft = 0 if min_nfft is None else _as_count(min_nfft, "min_nfft", 0)
    nfft = fft_length(n_window, min_nfft, pow2)

    if sides is None:
        sides = "twosided" if np.iscomplexobj(x) else "onesided"
    if sides not in SIDES:
        raise InvalidParameter(f"sides must be one of {SIDES}, got {sides!r}")
    if sides == "onesided" and np.iscomplexobj(x):
        raise InvalidParameter("complex data needs a two-sided spectrum")

    f_top = fs / 2 if sides == "onesided" else fs
    if frequency_range is None:
        frequency_range = (0.0, f_top)
    else:
        if np.size(frequency_range) != 2:
            raise InvalidParameter(
                f"frequency range must be [fmin, fmax], got {frequency_range!r}")
        try:
            fmin, fmax = (float(f) for f in np.ravel(frequency_range))
        except (TypeError, ValueError) as e:
            raise InvalidParameter(f"frequency range must be numeric: {e}") from e
        if fmin < 0:
            raise InvalidParameter(f"frequency range minimum must be >= 0, got {fmin}")
        if fmin >= fmax:
            raise InvalidParameter(f"frequency range needs fmin < fmax, got [{fmin}, {fmax}]")
        if fmax > f_top:
            fmax = f_top
            warnings.warn(
                f"upper frequency above {'Nyquist' if sides == 'onesided' else 'fs'}, "
                f"setting range to [{fmin:g}, {fmax:g}]", MultitaperWarning, stacklevel=2)
            if fmin >= fmax:
                raise InvalidParameter(f"frequency range [{fmin}, {fmax}] is empty")
        frequency_range = (fmin, fmax)
    if not band_mask(frequencies(fs, nfft, sides), frequency_range).any():
        raise InvalidParameter(
            f"no frequency bin of width {fs / nfft:g}Hz falls in "
            f"[{frequency_range[0]:g}, {frequency_range[1]:g}]Hz")

    if detrend is False or detrend is None:
        detrend = "off"
    if str(detrend).lower() not in _DETRENDS:
        raise InvalidParameter(
            f"{detrend!r} is not a valid detrend option; choose 'linear', 'constant' or 'off'")

    return SpectrogramParams(
        fs=fs, n_window=n_window, n_step=n_step, time_bandwidth=tw,
        n_tapers=k, nfft=nfft, frequency_range=frequency_range,
        weighting=normalize_weighting(weighting),
        detrend=_DETRENDS[str(detrend).lower()], sides=sides,
        pad_trailing=bool(pad_trailing))


def _spectrum_block(segs: Segments, rows: slice, tapers: TaperSet,
                    params: SpectrogramParams):
    data = segs.matrix(rows)
    n_valid = segs.valid_lengths(rows)
    full = n_valid == segs.n
    if full.any():
        data[full] = detrend_segments(data[full], params.detrend)
    # padded windows: detrend the real samples only, the padding stays zero
    for i in np.flatnonzero(~full):
        data[i, :n_valid[i]] = detrend_segments(data[i, :n_valid[i]], params.detrend)
    power = tapered_power(data, tapers.tapers, params.nfft, params.sides)  # (b, k, F)
    variance = np.mean(np.abs(data) ** 2, axis=-1)
    return rows, combine(power, params.weighting, tapers.eigenvalues, variance)


def multitaper_spectrogram(data, fs, window_length=5.0, window_step=1.0,
                           time_bandwidth=5.0, num_tapers=None, min_nfft=0,
                           frequency_range=None, weighting="unity", *,
                           detrend="linear", pad_trailing=False, pow2=False,
                           sides=None, n_jobs: Optional[int] = 1,
                           block_size: int = 256, verbose: bool = False
                           ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Compute the multitaper spectrogram of a 1-D signal.

    Parameters
    ----------
    data : (n,) array
        Signal samples. Complex data gives a two-sided spectrum.
    fs : float
        Sampling rate in Hz.
    window_length, window_step : float
        Window size and hop in seconds (rounded to whole samples).
    time_bandwidth : float
        Time-half-bandwidth product NW.
    num_tapers : int, optional
        Number of DPSS tapers; default ``floor(2*NW) - 1``.
    min_nfft : int
        Minimum FFT length. 0 (default) transforms the window unpadded;
        a larger value zero-pads each window to that length.
    frequency_range : (fmin, fmax), optional
        Columns kept in the output, in Hz. Default ``[0, fs/2]``.
    weighting : {'unity', 'eigen', 'adapt'}
        How taper spectra are combined.
    detrend : {'linear', 'constant', 'off'}
        Per-window detrending before tapering.
    pad_trailing : bool
        Emit a final zero-padded window for the leftover samples.
    pow2 : bool
        Also round the FFT length up to the next power of two (off by
        default).
    sides : {'onesided', 'twosided'}, optional
        Default one-sided for real data.
    n_jobs : int
        Worker threads for the segment blocks (joblib semantics, -1 = all).
    block_size : int
        Segments per unit of work.
    verbose : bool
        Print the spectrogram properties and compute time.

    Returns
    -------
    spect : (T, F) ndarray
        Power spectral density, rows are times.
    stimes : (T,) ndarray
        Window-centre times in seconds.
    sfreqs : (F,) ndarray
        Frequencies in Hz.
    """
    x = _as_signal(data)
    params = resolve_params(x, fs, window_length, window_step, time_bandwidth,
                            num_tapers, min_nfft, frequency_range, weighting,
                            detrend=detrend, pad_trailing=pad_trailing,
                            pow2=pow2, sides=sides)
    block_size = _as_count(block_size, "block_size", 1)
    if verbose:
        print(params.describe())
    tic = timeit.default_timer()

    tapers = dpss_tapers(params.n_window, params.time_bandwidth, params.n_tapers)
    segs = Segments(x, params.n_window, params.n_step, params.pad_trailing)
    n_seg = len(segs)
    blocks = [slice(i, min(i + block_size, n_seg)) for i in range(0, n_seg, block_size)]

    results = Parallel(n_jobs=n_jobs, prefer="threads")(
        delayed(_spectrum_block)(segs, rows, tapers, params) for rows in blocks)

    averaged = np.empty((n_seg, n_bins(params.nfft, params.sides)))
    for rows, avg in results:
        averaged[rows] = avg
    if params.sides == "onesided":
        averaged = fold_onesided(averaged, params.nfft)
    averaged /= params.fs

    spect, stimes, sfreqs = assemble(averaged, params.fs, params.n_window,
                                     params.n_step, params.nfft, params.sides)
    keep = band_mask(sfreqs, params.frequency_range)
    spect, sfreqs = spect[:, keep], sfreqs[keep]

    toc = timeit.default_timer()
    if verbose:
        print(f"\n Multitaper compute time: {toc - tic:.2f} seconds")
        if not spect.any():
            print("\n Data was all zeros, no output")
    return spect, stimes, sfreqs

from __future__ import annotations
from pathlib import Path
from typing import Optional
import numpy as np
import scipy.io as sio

from .errors import InvalidParameter

__all__ = ["load_signal", "save_spectrogram"]


def load_signal(path: Path, key: str = "data", channel: int = 0,
                fs: Optional[float] = None, start_s: Optional[float] = None,
                stop_s: Optional[float] = None) -> np.ndarray:
    """Return 1-D float64 trace (shape: samples,).

    ``.mat`` files are read with scipy (variable ``key``), ``.npy`` with numpy,
    anything else as whitespace/comma separated text. Multichannel data keeps
    ``channel``. ``start_s``/``stop_s`` crop in seconds and need ``fs``.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".mat":
        mat = sio.loadmat(path, squeeze_me=True, struct_as_record=False)
        if key not in mat:
            names = sorted(k for k in mat if not k.startswith("__"))
            raise InvalidParameter(f"{path.name}: no variable {key!r} (found {names})")
        data = np.asarray(mat[key])
    elif suffix == ".npy":
        data = np.load(path)
    else:
        data = np.loadtxt(path, delimiter="," if suffix == ".csv" else None)

    if not np.iscomplexobj(data):
        data = np.asarray(data, dtype=np.float64)
    if data.ndim == 2:
        if data.shape[0] > data.shape[1]:   # MATLAB (samples×chan)
            data = data.T
        if not 0 <= channel < data.shape[0]:
            raise InvalidParameter(f"channel {channel} out of range (0..{data.shape[0] - 1})")
        data = data[channel]
    elif data.ndim != 1:
        raise InvalidParameter(f"{path.name}: expected 1-D or 2-D data, got shape {data.shape}")

    if start_s is not None or stop_s is not None:
        if fs is None:
            raise InvalidParameter("cropping by seconds needs the sampling rate")
        start = 0 if start_s is None else int(round(start_s * fs))
        stop = None if stop_s is None else int(round(stop_s * fs))
        data = data[start:stop]
    return data


def save_spectrogram(path: Path, spect: np.ndarray, stimes: np.ndarray,
                     sfreqs: np.ndarray, **meta) -> Path:
    """Write ``spect``/``stimes``/``sfreqs`` (+ scalar metadata) to ``.mat`` or ``.npz``."""
    path = Path(path)
    arrays = dict(spect=spect, stimes=stimes, sfreqs=sfreqs, **meta)
    if path.suffix.lower() == ".mat":
        sio.savemat(path, arrays)
    elif path.suffix.lower() == ".npz":
        np.savez(path, **arrays)
    else:
        raise InvalidParameter(f"unsupported output format {path.suffix!r}; use .npz or .mat")
    return path

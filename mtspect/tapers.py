from __future__ import annotations
import math
import warnings
from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple
import numpy as np
from scipy.signal.windows import dpss

from .errors import InvalidParameter, TaperConcentrationWarning

__all__ = ["TaperSet", "dpss_tapers", "default_taper_count"]

_SIGN_TOL = 1e-8  # relative to the taper's peak


@dataclass(frozen=True)
class TaperSet:
    """Orthonormal DPSS tapers for one (n, tw, k).

    Attributes
    ----------
    tapers : (n, k) ndarray
        One taper per column, unit L2 norm, read-only.
    eigenvalues : (k,) ndarray
        Spectral concentration of each taper, non-increasing.
    time_bandwidth : float
        Time-half-bandwidth product NW.
    """

    tapers: np.ndarray
    eigenvalues: np.ndarray
    time_bandwidth: float

    @property
    def n_samples(self) -> int:
        return self.tapers.shape[0]

    @property
    def n_tapers(self) -> int:
        return self.tapers.shape[1]

    def n_concentrated(self, threshold: float = 0.9) -> int:
        return int(np.count_nonzero(self.eigenvalues >= threshold))


def default_taper_count(tw: float) -> int:
    """floor(2*NW) - 1, never below one."""
    return max(math.floor(2 * tw) - 1, 1)


@lru_cache(maxsize=32)
def _dpss_cached(n: int, tw: float, k: int) -> Tuple[np.ndarray, np.ndarray]:
    if n == 1:
        tapers = np.ones((1, 1))
        conc = np.array([min(2.0 * tw, 1.0)])
    else:
        tapers, conc = dpss(n, tw, k, norm=2, return_ratios=True, sym=True)
        tapers = np.array(tapers, dtype=np.float64).reshape(k, n).T   # (n, k)
        conc = np.atleast_1d(np.asarray(conc, dtype=np.float64))
        # first non-negligible sample positive
        mag = np.abs(tapers)
        lead = np.argmax(mag > _SIGN_TOL * mag.max(axis=0), axis=0)
        tapers[:, tapers[lead, np.arange(k)] < 0] *= -1.0
    tapers.flags.writeable = False
    conc.flags.writeable = False
    return tapers, conc


def dpss_tapers(n: int, tw: float, k: int,
                concentration_threshold: float = 0.9) -> TaperSet:
    """DPSS tapers of length ``n`` with time-half-bandwidth ``tw``.

    Exactly ``k`` tapers are returned even when ``k`` exceeds ``2*tw``; the
    extra tapers are orthogonal but poorly concentrated, which is reported
    with a :class:`TaperConcentrationWarning`.
    """
    if int(n) != n or n < 1:
        raise InvalidParameter(f"window length must be a positive integer, got {n}")
    if not np.isfinite(tw) or tw <= 0:
        raise InvalidParameter(f"time-bandwidth product must be > 0, got {tw}")
    if int(k) != k or k < 1:
        raise InvalidParameter(f"taper count must be a positive integer, got {k}")
    n, k, tw = int(n), int(k), float(tw)
    if k > n:
        raise InvalidParameter(f"cannot build {k} orthogonal tapers of length {n}")
    if n > 1 and tw >= n / 2:
        raise InvalidParameter(
            f"time-bandwidth product {tw} must be less than half the window length ({n / 2})")

    tapers, conc = _dpss_cached(n, tw, k)
    taper_set = TaperSet(tapers=tapers, eigenvalues=conc, time_bandwidth=tw)

    good = taper_set.n_concentrated(concentration_threshold)
    if good < k:
        warnings.warn(
            f"{k - good} of {k} tapers have spectral concentration below "
            f"{concentration_threshold} (NW={tw}); variance reduction degrades, "
            f"consider k <= {default_taper_count(tw)}",
            TaperConcentrationWarning, stacklevel=2)
    return taper_set

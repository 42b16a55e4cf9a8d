from __future__ import annotations
import warnings
import numpy as np
from numba import njit

from .errors import ConvergenceWarning, DimensionMismatch, InvalidParameter

__all__ = ["WEIGHTINGS", "normalize_weighting", "combine"]

WEIGHTINGS = ("unity", "eigen", "adapt")
_ALIASES = {"unity": "unity", "uniform": "unity", "mean": "unity",
            "eigen": "eigen",
            "adapt": "adapt", "adaptive": "adapt"}
_CODES = {0: "unity", 1: "eigen", 2: "adapt"}


def normalize_weighting(weighting) -> str:
    """Map a weighting name (or 0/1/2 code) onto one of ``WEIGHTINGS``."""
    if isinstance(weighting, (int, np.integer)) and not isinstance(weighting, bool):
        if int(weighting) in _CODES:
            return _CODES[int(weighting)]
    elif isinstance(weighting, str) and weighting.lower() in _ALIASES:
        return _ALIASES[weighting.lower()]
    raise InvalidParameter(
        f"unknown weighting {weighting!r}; expected one of {WEIGHTINGS} or 0/1/2")


@njit(cache=True, nogil=True)
def _adaptive_kernel(spectra, eigvals, variance, tol, max_iter):
    T, K, F = spectra.shape
    out = np.empty((T, F))
    unconverged = np.zeros(T, np.int64)
    w = np.empty(K)
    w_prev = np.empty(K)
    m = min(2, K)
    for t in range(T):
        for f in range(F):
            # seed with the two best-concentrated tapers
            s = 0.0
            for k in range(m):
                s += spectra[t, k, f]
            s /= m
            for k in range(K):
                w_prev[k] = 0.0
            converged = False
            it = 0
            while it < max_iter:
                it += 1
                total = 0.0
                for k in range(K):
                    denom = eigvals[k] * s + (1.0 - eigvals[k]) * variance[t]
                    b = s / denom if denom > 0.0 else 0.0
                    w[k] = eigvals[k] * b * b
                    total += w[k]
                if not total > 0.0:
                    s = 0.0
                    for k in range(K):
                        s += spectra[t, k, f]
                    s /= K
                    converged = True
                    break
                s = 0.0
                change = 0.0
                for k in range(K):
                    w[k] /= total
                    s += w[k] * spectra[t, k, f]
                    change = max(change, abs(w[k] - w_prev[k]))
                    w_prev[k] = w[k]
                if change < tol:
                    converged = True
                    break
            out[t, f] = s
            if not converged:
                unconverged[t] += 1
    return out, unconverged


def combine(spectra: np.ndarray, weighting: str = "unity",
            eigenvalues: np.ndarray | None = None,
            variance: np.ndarray | float | None = None,
            tol: float = 1e-6, max_iter: int = 100) -> np.ndarray:
    """Combine per-taper spectra into one estimate per segment.

    Parameters
    ----------
    spectra : (k, F) or (T, k, F) ndarray
        Non-negative per-taper power.
    weighting : {'unity', 'eigen', 'adapt'}
        'unity' averages the tapers, 'eigen' weights them by concentration,
        'adapt' uses Thomson's iterative per-bin weights.
    eigenvalues : (k,) ndarray
        Taper concentrations; required for 'eigen' and 'adapt'.
    variance : float or (T,) ndarray, optional
        Time-domain variance of each segment ('adapt' only). Estimated from
        the spectra when omitted.
    tol, max_iter
        Stop rule for 'adapt': largest normalized weight change below ``tol``
        or ``max_iter`` iterations per bin.

    Returns
    -------
    (F,) or (T, F) ndarray
    """
    weighting = normalize_weighting(weighting)
    spectra = np.asarray(spectra, dtype=np.float64)
    single = spectra.ndim == 2
    if single:
        spectra = spectra[None]
    if spectra.ndim != 3:
        raise DimensionMismatch(f"spectra must be (k, F) or (T, k, F), got {spectra.shape}")
    T, K, _ = spectra.shape

    if weighting == "unity":
        avg = spectra.mean(axis=1)
    else:
        if eigenvalues is None:
            raise InvalidParameter(f"{weighting!r} weighting needs taper eigenvalues")
        eig = np.array(eigenvalues, dtype=np.float64).ravel()
        if eig.size != K:
            raise DimensionMismatch(f"{eig.size} eigenvalues for {K} taper spectra")
        if weighting == "eigen":
            avg = np.tensordot(eig, spectra, axes=([0], [1])) / eig.sum()
        else:
            if variance is None:
                var = spectra.mean(axis=(1, 2))
            else:
                var = np.asarray(variance, dtype=np.float64)
                if var.ndim == 0:
                    var = np.full(T, float(var))
            if var.shape != (T,):
                raise DimensionMismatch(f"variance shape {var.shape} for {T} segments")
            avg, unconverged = _adaptive_kernel(
                np.ascontiguousarray(spectra), np.ascontiguousarray(eig),
                np.ascontiguousarray(var), float(tol), int(max_iter))
            if unconverged.any():
                warnings.warn(
                    f"adaptive weights did not converge within {max_iter} "
                    f"iterations in {int(unconverged.sum())} bins",
                    ConvergenceWarning, stacklevel=2)
    return avg[0] if single else avg

"""Multitaper spectrogram estimation with DPSS tapers."""
from . import assemble, binding, engine, errors, segments, spect, tapers, weights
from .engine import SpectrogramParams, multitaper_spectrogram, resolve_params
from .errors import (ConvergenceWarning, DimensionMismatch, InvalidParameter,
                     MultitaperError, MultitaperWarning, TaperConcentrationWarning)
from .spect import nanpow2db
from .tapers import TaperSet, dpss_tapers

__version__ = "0.1.0"

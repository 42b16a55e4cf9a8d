"""Exceptions and warnings raised by mtspect."""


class MultitaperError(Exception):
    """Base class for mtspect errors."""


class InvalidParameter(MultitaperError, ValueError):
    """A caller-supplied argument is out of range. Fix the call and retry."""


class DimensionMismatch(MultitaperError, RuntimeError):
    """Two stages of the pipeline disagree on an array shape (a bug, not bad input)."""


class MultitaperWarning(UserWarning):
    """Non-fatal diagnostic; the computation still completes."""


class TaperConcentrationWarning(MultitaperWarning):
    pass


class ConvergenceWarning(MultitaperWarning):
    pass

"""
Exceptions raised by mpm_pitch.

Only malformed input is an error. Flat curves, zero-energy lags and windows
without a usable period are recovered inside the pipeline and reported as
values (see PitchEstimate.unvoiced()).
"""


class InvalidInputError(ValueError):
    """Raised when a window, sample rate or threshold cannot be analyzed."""
    pass

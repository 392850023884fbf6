"""
mpm_pitch - Pitch estimation of audio windows with the McLeod pitch method.

The NSDF (normalized square difference function) of a window is computed
with zero-padded FFTs and an O(1)-per-lag energy recurrence, its key maxima
are refined with parabolic interpolation, and the first maximum above a
fraction of the highest one gives the period.

Usage:
    from mpm_pitch import estimate_pitch

    estimate = estimate_pitch(window, sample_rate=44100)
    if estimate.voiced:
        print(estimate.frequency, estimate.get_value("midi"))

    # Intermediate curves for plotting
    from mpm_pitch import analyze
    analysis = analyze(window, 44100, threshold=0.93)
    analysis.nsdf, analysis.key_maxima, analysis.selected

Configuration (for PitchEstimator / MpmConfig.load()):
    1. Keyword overrides
    2. MPM_PITCH_THRESHOLD / MPM_PITCH_MAX_LAG environment variables
    3. Config file (./mpm_pitch.toml or ~/.mpm_pitch/config.toml)
    4. Defaults (threshold 0.9)
"""

from .config import MpmConfig
from .exceptions import InvalidInputError
from .nsdf import (
    autocorrelation,
    direct_autocorrelation,
    energy_terms,
    direct_energy_terms,
    normalize,
    nsdf,
    direct_nsdf,
    square_difference,
)
from .peaks import (
    ZeroCrossing,
    KeyMaximum,
    RefinedMaximum,
    zero_crossings,
    candidate_brackets,
    key_maxima,
    refine_maximum,
    refine_maxima,
    select_period,
)
from .pitch import (
    PitchEstimate,
    NsdfAnalysis,
    PitchEstimator,
    analyze,
    estimate_pitch,
)

__version__ = "0.1.0"
__all__ = [
    "MpmConfig",
    "InvalidInputError",
    "autocorrelation",
    "direct_autocorrelation",
    "energy_terms",
    "direct_energy_terms",
    "normalize",
    "nsdf",
    "direct_nsdf",
    "square_difference",
    "ZeroCrossing",
    "KeyMaximum",
    "RefinedMaximum",
    "zero_crossings",
    "candidate_brackets",
    "key_maxima",
    "refine_maximum",
    "refine_maxima",
    "select_period",
    "PitchEstimate",
    "NsdfAnalysis",
    "PitchEstimator",
    "analyze",
    "estimate_pitch",
]

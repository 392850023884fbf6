"""
Pitch - Fundamental frequency of a single window with the McLeod pitch method.

Implementation order: Phase 3
Dependencies: nsdf, peaks

Documentation sources:
- McLeod & Wyvill (2005): "A Smarter Way to Find Pitch"

Key documented facts (from McLeod & Wyvill 2005):
- Pitch period τ* is the lag of the selected key maximum
- Frequency: f = sample_rate / τ*
- Clarity: the NSDF value at the selected key maximum (near 1 for a
  strongly periodic window)

Decision points:
- DP1: Minimum window. Parabolic interpolation needs a sample on each side
  of a peak, so windows shorter than 3 samples are rejected.
- DP2: No pitch is a value, not an exception. Silence, DC and noise give
  PitchEstimate.unvoiced().
- DP3: max_lag larger than the window is clipped to W - 1 with a warning.
"""

import math
import warnings
import numpy as np
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .nsdf import autocorrelation, energy_terms, normalize
from .config import MpmConfig, check_max_lag, check_threshold, DEFAULT_THRESHOLD
from .exceptions import InvalidInputError
from .peaks import (
    KeyMaximum,
    RefinedMaximum,
    ZeroCrossing,
    candidate_brackets,
    key_maxima,
    refine_maxima,
    select_period,
    zero_crossings,
)


MIN_WINDOW_LENGTH = 3


@dataclass(frozen=True)
class PitchEstimate:
    """Result of analyzing one window."""
    frequency: Optional[float]  # Hz (None = no pitch)
    lag: Optional[float]        # Period in samples
    clarity: float = 0.0        # NSDF value at the period (0-1)

    @classmethod
    def unvoiced(cls) -> "PitchEstimate":
        """The "no pitch detected" result."""
        return cls(None, None, 0.0)

    @property
    def voiced(self) -> bool:
        """Whether a pitch was found."""
        return self.frequency is not None

    def get_value(self, unit: str = "Hertz") -> Optional[float]:
        """
        Get the frequency in the given unit.

        Args:
            unit: "Hertz", "semitones" (re 100 Hz), "mel", "erb" or "midi"

        Returns:
            Converted value, or None if no pitch was found
        """
        if not self.voiced:
            return None

        value = self.frequency
        if unit.lower() == "hertz":
            return float(value)
        elif unit.lower() == "semitones":
            # Semitones relative to 100 Hz
            return float(12.0 * np.log2(value / 100.0))
        elif unit.lower() == "mel":
            return float(1127.0 * np.log(1.0 + value / 700.0))
        elif unit.lower() == "erb":
            return float(21.4 * np.log10(0.00437 * value + 1.0))
        elif unit.lower() == "midi":
            return float(69.0 + 12.0 * np.log2(value / 440.0))
        raise ValueError(f"Unknown unit: {unit}")


@dataclass
class NsdfAnalysis:
    """Every intermediate result of one pitch estimate, for inspection or plotting."""
    sample_rate: float
    threshold: float
    autocorrelation: np.ndarray
    energy: np.ndarray
    nsdf: np.ndarray
    crossings: List[ZeroCrossing] = field(default_factory=list)
    brackets: List[Tuple[int, int]] = field(default_factory=list)
    key_maxima: List[KeyMaximum] = field(default_factory=list)
    refined_maxima: List[RefinedMaximum] = field(default_factory=list)
    selected: Optional[RefinedMaximum] = None
    estimate: PitchEstimate = field(default_factory=PitchEstimate.unvoiced)

    @property
    def n_max(self) -> Optional[float]:
        """Highest refined maximum value (None if there are no candidates)."""
        if not self.refined_maxima:
            return None
        return max(peak.value for peak in self.refined_maxima)

    @property
    def bound(self) -> Optional[float]:
        """Value a candidate must exceed to be selected."""
        n_max = self.n_max
        if n_max is None:
            return None
        return self.threshold * n_max

    def lags(self) -> np.ndarray:
        """Lag axis of the curves."""
        return np.arange(len(self.nsdf))

    def lag_times(self) -> np.ndarray:
        """Lag axis of the curves in seconds."""
        return self.lags() / self.sample_rate


def _check_window(samples) -> np.ndarray:
    """Convert and validate a window, returning a float64 copy."""
    try:
        x = np.array(samples, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"Window must contain real numbers: {e}") from e

    if x.ndim != 1:
        raise InvalidInputError(f"Window must be 1-D (mono), got shape {x.shape}")
    if len(x) == 0:
        raise InvalidInputError("Window is empty")
    if len(x) < MIN_WINDOW_LENGTH:
        raise InvalidInputError(
            f"Window needs at least {MIN_WINDOW_LENGTH} samples, got {len(x)}"
        )
    if not np.all(np.isfinite(x)):
        bad = int(np.flatnonzero(~np.isfinite(x))[0])
        raise InvalidInputError(f"Window contains a non-finite sample at index {bad}")

    return x


def _check_sample_rate(sample_rate) -> float:
    try:
        value = float(sample_rate)
    except (TypeError, ValueError):
        raise InvalidInputError(f"Sample rate must be a number, got {sample_rate!r}")
    if not math.isfinite(value) or value <= 0.0:
        raise InvalidInputError(f"Sample rate must be positive, got {sample_rate!r}")
    return value


def _run(samples, sample_rate, threshold, max_lag, stacklevel: int) -> NsdfAnalysis:
    """
    Validate the arguments and run the pipeline.

    stacklevel is counted from this function, so the max_lag warning points
    at the code that called the public entry point.
    """
    x = _check_window(samples)
    sample_rate = _check_sample_rate(sample_rate)
    threshold = check_threshold(threshold)
    max_lag = check_max_lag(max_lag)

    if max_lag is not None and max_lag >= len(x):
        warnings.warn(
            f"max_lag={max_lag} exceeds the window ({len(x)} samples); "
            f"using {len(x) - 1}",
            stacklevel=stacklevel
        )
        max_lag = None

    r = autocorrelation(x, max_lag)
    m = energy_terms(x, r[0], max_lag)
    curve = normalize(r, m)

    crossings = zero_crossings(curve)
    keys = key_maxima(curve)
    refined = refine_maxima(curve, keys)
    selected = select_period(refined, threshold)

    analysis = NsdfAnalysis(
        sample_rate=sample_rate,
        threshold=threshold,
        autocorrelation=r,
        energy=m,
        nsdf=curve,
        crossings=crossings,
        brackets=candidate_brackets(crossings, len(curve)),
        key_maxima=keys,
        refined_maxima=refined,
        selected=selected,
    )

    if selected is not None and selected.lag > 0:
        analysis.estimate = PitchEstimate(
            frequency=sample_rate / selected.lag,
            lag=selected.lag,
            clarity=selected.value,
        )

    return analysis


def analyze(
    samples,
    sample_rate: float,
    threshold: float = DEFAULT_THRESHOLD,
    max_lag: Optional[int] = None
) -> NsdfAnalysis:
    """
    Run the full McLeod pitch method on one window.

    Args:
        samples: Mono signal window (at least 3 finite samples)
        sample_rate: Sample rate in Hz
        threshold: Fraction k of the highest key maximum (0 <= k < 1)
        max_lag: Largest lag analyzed (default W - 1)

    Returns:
        NsdfAnalysis with all intermediate curves and the estimate

    Raises:
        InvalidInputError: If any argument is malformed
    """
    return _run(samples, sample_rate, threshold, max_lag, stacklevel=3)


def estimate_pitch(
    samples,
    sample_rate: float,
    threshold: float = DEFAULT_THRESHOLD,
    max_lag: Optional[int] = None
) -> PitchEstimate:
    """
    Estimate the fundamental frequency of one window.

    Args:
        samples: Mono signal window (at least 3 finite samples)
        sample_rate: Sample rate in Hz
        threshold: Fraction k of the highest key maximum (0 <= k < 1)
        max_lag: Largest lag analyzed (default W - 1)

    Returns:
        PitchEstimate (unvoiced if no period was found)

    Raises:
        InvalidInputError: If any argument is malformed
    """
    return _run(samples, sample_rate, threshold, max_lag, stacklevel=3).estimate


class PitchEstimator:
    """
    McLeod pitch estimator bound to one configuration.

    Holds no per-window state, so one instance can serve independent
    windows from several threads.
    """

    def __init__(self, config: Optional[MpmConfig] = None):
        """
        Create an estimator.

        Args:
            config: Analysis parameters (default MpmConfig.load())
        """
        self._config = config if config is not None else MpmConfig.load()

    @property
    def config(self) -> MpmConfig:
        """Analysis parameters."""
        return self._config

    def estimate(self, samples, sample_rate: float) -> PitchEstimate:
        """Estimate the pitch of one window."""
        return _run(samples, sample_rate, self._config.threshold,
                    self._config.max_lag, stacklevel=3).estimate

    def analyze(self, samples, sample_rate: float) -> NsdfAnalysis:
        """Run the full analysis of one window."""
        return _run(samples, sample_rate, self._config.threshold,
                    self._config.max_lag, stacklevel=3)

"""
NSDF - Normalized Square Difference Function of a signal window.

Implementation order: Phase 1
Dependencies: None (foundation for peak picking)

Documentation sources:
- McLeod & Wyvill (2005): "A Smarter Way to Find Pitch"

Key documented facts (from McLeod & Wyvill 2005):
- Autocorrelation: r(τ) = Σ x[j]·x[j+τ]  (Eq. 1, type II, shrinking window)
- Square difference: d(τ) = Σ (x[j] - x[j+τ])² = m(τ) - 2·r(τ)  (Eq. 5)
- Energy term: m(τ) = Σ (x[j]² + x[j+τ]²)  (Eq. 6)
- NSDF: n(τ) = 2·r(τ) / m(τ), mathematically within [-1, 1]  (Eq. 9)

Decision points:
- DP1: Transform length. The inverse transform of |X|² for an N-point
  transform is the circular autocorrelation c(τ) = r(τ) + r(N - τ). Since
  r(τ) = 0 for |τ| >= W, c(τ) equals the linear r(τ) for every τ <= max_lag
  exactly when N >= W + max_lag. Padding by only W/2 (N = W + W/2) leaves
  lags above W/2 contaminated by wraparound, so the padding is derived from
  the largest lag that is returned.
- DP2: Energy recurrence indexing (0-based samples). Going from lag τ-1 to
  τ drops x[W-τ] from the first half and x[τ-1] from the shifted half.
- DP3: Zero energy. The forward recurrence accumulates round-off of order
  W × eps × m(0), so the last lags of a tapered window carry energies that
  are pure round-off. n(τ) is NaN (indeterminate) wherever
  m(τ) <= sqrt(eps) × m(0), never ±inf and never a clipped ±1.
"""

import numpy as np
from typing import Optional


# Energies at or below this fraction of m(0) are indeterminate
ENERGY_FLOOR = float(np.sqrt(np.finfo(np.float64).eps))


def _as_window(samples) -> np.ndarray:
    """Convert samples to a float64 1D array without modifying the input."""
    return np.asarray(samples, dtype=np.float64).ravel()


def _resolve_max_lag(n: int, max_lag: Optional[int]) -> int:
    """Clip the requested maximum lag to the window (default W - 1)."""
    if max_lag is None or max_lag >= n:
        return n - 1
    return max(int(max_lag), 0)


# =============================================================================
# Autocorrelation engine
# =============================================================================

def autocorrelation(samples, max_lag: Optional[int] = None) -> np.ndarray:
    """
    Compute the linear autocorrelation with zero-padded FFTs.

    r(τ) = Σ_{j=0}^{W-1-τ} x[j] × x[j+τ]

    The window is zero-padded to W + max_lag points before the forward
    transform (see DP1), the power spectrum |X|² is inverse transformed, and
    the first max_lag + 1 values are kept. The rest of the inverse transform
    is the mirror image (negative lags) and is discarded.

    Args:
        samples: Signal window (W samples)
        max_lag: Largest lag to return (default W - 1)

    Returns:
        Array of autocorrelation values for lags 0..max_lag
    """
    x = _as_window(samples)
    n = len(x)
    if n == 0:
        return np.zeros(0)

    max_lag = _resolve_max_lag(n, max_lag)
    n_fft = n + max_lag

    spectrum = np.fft.rfft(x, n_fft)
    power = spectrum.real ** 2 + spectrum.imag ** 2
    r = np.fft.irfft(power, n_fft)

    return r[:max_lag + 1]


def direct_autocorrelation(samples, max_lag: Optional[int] = None) -> np.ndarray:
    """
    Compute the autocorrelation by direct summation, O(W²).

    Reference implementation for validating the FFT engine.

    Args:
        samples: Signal window
        max_lag: Largest lag to compute (default W - 1)

    Returns:
        Array of autocorrelation values for lags 0..max_lag
    """
    x = _as_window(samples)
    n = len(x)
    if n == 0:
        return np.zeros(0)

    max_lag = _resolve_max_lag(n, max_lag)
    r = np.zeros(max_lag + 1)

    for lag in range(max_lag + 1):
        r[lag] = np.sum(x[:n-lag] * x[lag:])

    return r


# =============================================================================
# Energy normalizer
# =============================================================================

def energy_terms(samples, r0: Optional[float] = None,
                 max_lag: Optional[int] = None) -> np.ndarray:
    """
    Compute the energy term m(τ) with an O(1) recurrence per lag.

    From the definition m(τ) = Σ_{j=0}^{W-1-τ} (x[j]² + x[j+τ]²):
        m(0) = 2 × r(0)
        m(τ) = m(τ-1) - x[W-τ]² - x[τ-1]²

    Each step removes the two samples that leave the shrinking summation
    window. Round-off can push the running value below zero for the last
    lags; it is clamped to 0 and the clamped value seeds the next step.

    Args:
        samples: Signal window (W samples)
        r0: Autocorrelation at lag 0 (total energy); computed if omitted
        max_lag: Largest lag to compute (default W - 1)

    Returns:
        Array of non-negative energy values for lags 0..max_lag
    """
    x = _as_window(samples)
    n = len(x)
    if n == 0:
        return np.zeros(0)

    max_lag = _resolve_max_lag(n, max_lag)
    squares = x * x
    if r0 is None:
        r0 = float(np.sum(squares))

    m = np.zeros(max_lag + 1)
    m[0] = max(2.0 * r0, 0.0)

    for lag in range(1, max_lag + 1):
        value = m[lag-1] - squares[n-lag] - squares[lag-1]
        m[lag] = value if value > 0.0 else 0.0

    return m


def direct_energy_terms(samples, max_lag: Optional[int] = None) -> np.ndarray:
    """Compute m(τ) by direct summation, O(W²)."""
    x = _as_window(samples)
    n = len(x)
    if n == 0:
        return np.zeros(0)

    max_lag = _resolve_max_lag(n, max_lag)
    m = np.zeros(max_lag + 1)

    for lag in range(max_lag + 1):
        m[lag] = np.sum(x[:n-lag] ** 2) + np.sum(x[lag:] ** 2)

    return m


# =============================================================================
# NSDF synthesizer
# =============================================================================

def normalize(r: np.ndarray, m: np.ndarray) -> np.ndarray:
    """
    Combine autocorrelation and energy into the NSDF.

    n(τ) = 2 × r(τ) / m(τ)

    Lags whose energy is zero or below the round-off floor
    ENERGY_FLOOR × max(m) (silence, or the tail of a tapered window) are
    indeterminate and come back as NaN (see DP3).

    Args:
        r: Autocorrelation values
        m: Energy values (same length as r)

    Returns:
        NSDF values, NaN where m(τ) is at or below the floor
    """
    r = np.asarray(r, dtype=np.float64)
    m = np.asarray(m, dtype=np.float64)

    n = np.full(len(r), np.nan)
    if len(m) == 0:
        return n

    floor = ENERGY_FLOOR * float(np.max(m))
    defined = m > floor
    n[defined] = 2.0 * r[defined] / m[defined]

    return n


def nsdf(samples, max_lag: Optional[int] = None) -> np.ndarray:
    """
    Compute the NSDF of a signal window.

    Args:
        samples: Signal window (W samples)
        max_lag: Largest lag to compute (default W - 1)

    Returns:
        NSDF values for lags 0..max_lag (n(0) = 1 for nonzero energy)
    """
    r = autocorrelation(samples, max_lag)
    if len(r) == 0:
        return r
    m = energy_terms(samples, r[0], max_lag)
    return normalize(r, m)


def direct_nsdf(samples, max_lag: Optional[int] = None) -> np.ndarray:
    """Compute the NSDF from the direct-summation references."""
    return normalize(direct_autocorrelation(samples, max_lag),
                     direct_energy_terms(samples, max_lag))


def square_difference(samples, max_lag: Optional[int] = None) -> np.ndarray:
    """
    Compute the square difference function d(τ) = m(τ) - 2 × r(τ).

    SDF minima sit at the periods of the signal; the NSDF is this curve
    rescaled as n(τ) = 1 - d(τ) / m(τ).

    Args:
        samples: Signal window (W samples)
        max_lag: Largest lag to compute (default W - 1)

    Returns:
        Array of SDF values for lags 0..max_lag
    """
    r = autocorrelation(samples, max_lag)
    if len(r) == 0:
        return r
    m = energy_terms(samples, r[0], max_lag)
    return m - 2.0 * r

"""
Peaks - Key maxima, sub-sample refinement and period selection on the NSDF.

Implementation order: Phase 2
Dependencies: nsdf (operates on the NSDF curve)

Documentation sources:
- McLeod & Wyvill (2005): "A Smarter Way to Find Pitch", Section 5

Key documented facts (from McLeod & Wyvill 2005):
- Key maxima: the highest maximum between every positively sloped zero
  crossing and the following negatively sloped zero crossing
- The maximum at lag 0 is ignored
- If the last positive crossing has no negative crossing after it, the
  highest maximum up to the end of the curve is taken anyway
- Parabolic interpolation through (k-1, k, k+1) refines each key maximum
- Pitch period: first key maximum above k × n_max (k = 0.8..1.0)

Decision points:
- DP1: Crossing lags. A rising crossing is reported at the first
  non-negative sample, a falling crossing at the first non-positive sample.
  Brackets are half-open [rise, fall).
- DP2: Lag 0. The scan starts with the pair (n[1], n[2]) so the pair that
  touches the trivial lag-0 maximum is never examined.
- DP3: Rising crossings seen while a bracket is open are ignored; the open
  bracket is closed by the next falling crossing strictly after its start.
- DP4: A pair involving a NaN (indeterminate lag) is not a crossing, and
  NaN samples are skipped by the bracket argmax.
- DP5: Parabola offset falls back to 0 for a flat neighborhood, a missing
  or NaN neighbor, and |p| >= 1 (edge of a bracket, not a true maximum).
"""

import numpy as np
from dataclasses import dataclass
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class ZeroCrossing:
    """A sign change of the NSDF curve."""
    lag: int      # First sample after the sign change
    rising: bool  # True for negative -> non-negative


@dataclass(frozen=True)
class KeyMaximum:
    """Largest NSDF sample inside a candidate bracket."""
    lag: int
    value: float


@dataclass(frozen=True)
class RefinedMaximum:
    """Key maximum moved to the vertex of the parabola through its neighbors."""
    lag: float
    value: float


# =============================================================================
# Peak picker
# =============================================================================

def zero_crossings(curve: np.ndarray) -> List[ZeroCrossing]:
    """
    Find all zero crossings of the curve after lag 1.

    A pair (n[τ-1], n[τ]) is rising when n[τ-1] <= 0 <= n[τ] and falling
    when n[τ-1] >= 0 >= n[τ]. A pair touching zero on both sides is both.

    Args:
        curve: NSDF values indexed by lag

    Returns:
        Crossings in increasing lag order
    """
    n = np.asarray(curve, dtype=np.float64)
    crossings = []

    for lag in range(2, len(n)):
        prev = n[lag-1]
        curr = n[lag]
        if np.isnan(prev) or np.isnan(curr):
            continue
        if prev <= 0.0 and curr >= 0.0:
            crossings.append(ZeroCrossing(lag, True))
        if prev >= 0.0 and curr <= 0.0:
            crossings.append(ZeroCrossing(lag, False))

    return crossings


def candidate_brackets(crossings: List[ZeroCrossing],
                       length: int) -> List[Tuple[int, int]]:
    """
    Pair each rising crossing with the next falling crossing.

    A bracket still open when the crossings run out is extended to the end
    of the curve, so the last candidate period is kept.

    Args:
        crossings: Zero crossings in increasing lag order
        length: Length of the curve (end of the last bracket)

    Returns:
        Half-open lag ranges (start, stop)
    """
    brackets = []
    start = None

    for crossing in crossings:
        if crossing.rising:
            if start is None:
                start = crossing.lag
        elif start is not None and crossing.lag > start:
            brackets.append((start, crossing.lag))
            start = None

    if start is not None and start < length:
        brackets.append((start, length))

    return brackets


def key_maxima(curve: np.ndarray) -> List[KeyMaximum]:
    """
    Find the key maxima of an NSDF curve.

    One linear pass finds the crossings, a second pass over each bracket
    finds its largest sample. A curve that never crosses zero (silence,
    DC, noise) gives an empty list.

    Args:
        curve: NSDF values indexed by lag

    Returns:
        Key maxima in increasing lag order
    """
    n = np.asarray(curve, dtype=np.float64)
    maxima = []

    for start, stop in candidate_brackets(zero_crossings(n), len(n)):
        segment = n[start:stop]
        if np.all(np.isnan(segment)):
            continue
        offset = int(np.nanargmax(segment))
        maxima.append(KeyMaximum(start + offset, float(segment[offset])))

    return maxima


# =============================================================================
# Sub-sample refiner
# =============================================================================

def refine_maximum(curve: np.ndarray, key: KeyMaximum) -> RefinedMaximum:
    """
    Refine a key maximum with parabolic interpolation.

    With α = n(k-1), β = n(k), γ = n(k+1):
        p = 0.5 × (α - γ) / (α - 2β + γ)
        lag = k + p
        value = β - 0.25 × (α - γ) × p

    Args:
        curve: NSDF values indexed by lag
        key: Key maximum to refine

    Returns:
        RefinedMaximum (the integer peak itself when p falls back to 0)
    """
    k = key.lag
    beta = key.value

    if k < 1 or k + 1 >= len(curve):
        return RefinedMaximum(float(k), beta)

    alpha = float(curve[k-1])
    gamma = float(curve[k+1])
    if np.isnan(alpha) or np.isnan(gamma):
        return RefinedMaximum(float(k), beta)

    denom = alpha - 2*beta + gamma
    if abs(denom) <= 1e-10:
        return RefinedMaximum(float(k), beta)

    delta = 0.5 * (alpha - gamma) / denom
    if abs(delta) >= 1:
        return RefinedMaximum(float(k), beta)

    return RefinedMaximum(k + delta, beta - 0.25 * (alpha - gamma) * delta)


def refine_maxima(curve: np.ndarray,
                  keys: List[KeyMaximum]) -> List[RefinedMaximum]:
    """Refine every key maximum, keeping lag order."""
    n = np.asarray(curve, dtype=np.float64)
    return [refine_maximum(n, key) for key in keys]


# =============================================================================
# Period selector
# =============================================================================

def select_period(refined: List[RefinedMaximum],
                  threshold: float = 0.9) -> Optional[RefinedMaximum]:
    """
    Choose the pitch period from the refined maxima.

    Takes the first maximum, in increasing lag order, whose value exceeds
    threshold × n_max. Preferring the shortest such lag over the global
    maximum avoids picking a multiple of the true period.

    Args:
        refined: Refined maxima in increasing lag order
        threshold: Fraction k of the highest maximum (0 <= k < 1)

    Returns:
        The selected maximum, or None if there is no candidate
    """
    if not refined:
        return None

    n_max = max(peak.value for peak in refined)
    bound = threshold * n_max

    for peak in refined:
        if peak.value > bound:
            return peak

    return None

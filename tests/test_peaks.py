"""Tests for key maxima, parabolic refinement and period selection."""

import pytest
import numpy as np

from mpm_pitch.peaks import (
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


# Lag:          0    1    2     3     4    5    6    7     8     9    10   11
CURVE = np.array([1.0, 0.5, -0.2, -0.4, 0.1, 0.6, 0.3, -0.1, -0.3, 0.2, 0.8, 0.7])


# =============================================================================
# Peak picker
# =============================================================================

class TestZeroCrossings:
    """Crossing detection."""

    def test_crossings(self):
        """Test rising and falling crossings on a hand-made curve."""
        assert zero_crossings(CURVE) == [
            ZeroCrossing(2, False),
            ZeroCrossing(4, True),
            ZeroCrossing(7, False),
            ZeroCrossing(9, True),
        ]

    def test_pair_touching_lag_zero_is_skipped(self):
        """Test the pair (n[0], n[1]) is never scanned."""
        curve = np.array([1.0, -0.5, 0.5, -0.5])
        assert zero_crossings(curve) == [
            ZeroCrossing(2, True),
            ZeroCrossing(3, False),
        ]

    def test_zero_sample_is_both(self):
        """Test a pair touching zero on both sides is rising and falling."""
        curve = np.array([1.0, -0.5, 0.0, 0.0])
        crossings = zero_crossings(curve)
        assert ZeroCrossing(2, True) in crossings
        assert ZeroCrossing(3, True) in crossings
        assert ZeroCrossing(3, False) in crossings

    def test_nan_is_not_a_crossing(self):
        """Test pairs involving NaN are skipped."""
        curve = np.array([1.0, 0.5, np.nan, -0.5, 0.5, 0.2, -0.1])
        assert zero_crossings(curve) == [
            ZeroCrossing(4, True),
            ZeroCrossing(6, False),
        ]


class TestCandidateBrackets:
    """Pairing of rising and falling crossings."""

    def test_pairs_and_tail(self):
        """Test brackets close on the next falling crossing and extend at the tail."""
        brackets = candidate_brackets(zero_crossings(CURVE), len(CURVE))
        assert brackets == [(4, 7), (9, 12)]

    def test_leading_falling_crossing_ignored(self):
        """Test a falling crossing before any rising one opens nothing."""
        crossings = [ZeroCrossing(3, False), ZeroCrossing(5, True), ZeroCrossing(8, False)]
        assert candidate_brackets(crossings, 20) == [(5, 8)]

    def test_rising_inside_open_bracket_ignored(self):
        """Test an open bracket ignores further rising crossings."""
        crossings = [ZeroCrossing(3, True), ZeroCrossing(5, True), ZeroCrossing(8, False)]
        assert candidate_brackets(crossings, 20) == [(3, 8)]

    def test_open_bracket_extends_to_end(self):
        """Test the last open bracket runs to the end of the curve."""
        crossings = [ZeroCrossing(3, True), ZeroCrossing(6, False), ZeroCrossing(10, True)]
        assert candidate_brackets(crossings, 15) == [(3, 6), (10, 15)]

    def test_no_crossings(self):
        """Test no crossings give no brackets."""
        assert candidate_brackets([], 100) == []


class TestKeyMaxima:
    """Local argmax inside each bracket."""

    def test_key_maxima(self):
        """Test one key maximum per bracket."""
        assert key_maxima(CURVE) == [KeyMaximum(5, 0.6), KeyMaximum(10, 0.8)]

    def test_last_candidate_kept_without_falling_crossing(self):
        """Test the last period is kept when the curve ends above zero."""
        curve = np.array([1.0, 0.2, -0.6, -0.3, 0.4, 0.9, 0.95])
        assert key_maxima(curve) == [KeyMaximum(6, 0.95)]

    def test_lag_zero_never_a_candidate(self):
        """Test the trivial maximum at lag 0 is never a key maximum."""
        # Never crosses zero: only the trivial maximum exists
        curve = np.linspace(1.0, 0.1, 50)
        assert key_maxima(curve) == []

    def test_all_nan(self):
        """Test an indeterminate curve has no key maxima."""
        assert key_maxima(np.full(64, np.nan)) == []

    def test_nan_inside_bracket_skipped(self):
        """Test NaN samples are ignored by the bracket argmax."""
        curve = np.array([1.0, 0.3, -0.4, 0.2, np.nan, 0.5, -0.2])
        assert key_maxima(curve) == [KeyMaximum(5, 0.5)]


# =============================================================================
# Sub-sample refiner
# =============================================================================

class TestRefineMaximum:
    """Parabolic interpolation."""

    def test_recovers_parabola_vertex(self):
        """Test the vertex of a sampled parabola is recovered exactly."""
        # y = 1 - (t - 5.3)² sampled at t = 4, 5, 6
        curve = np.zeros(10)
        curve[4:7] = [-0.69, 0.91, 0.51]
        refined = refine_maximum(curve, KeyMaximum(5, 0.91))
        assert refined.lag == pytest.approx(5.3)
        assert refined.value == pytest.approx(1.0)

    def test_symmetric_neighbors(self):
        """Test equal neighbors give no offset."""
        curve = np.array([0.0, 0.5, 1.0, 0.5, 0.0])
        assert refine_maximum(curve, KeyMaximum(2, 1.0)) == RefinedMaximum(2.0, 1.0)

    def test_flat_neighborhood_keeps_integer_lag(self):
        """Test a zero denominator falls back to the integer lag."""
        curve = np.array([0.0, 0.7, 0.7, 0.7, 0.0])
        refined = refine_maximum(curve, KeyMaximum(2, 0.7))
        assert refined == RefinedMaximum(2.0, 0.7)

    def test_last_lag_keeps_integer_lag(self):
        """Test a key maximum without a right neighbor is not moved."""
        curve = np.array([1.0, -0.2, 0.3, 0.8])
        assert refine_maximum(curve, KeyMaximum(3, 0.8)) == RefinedMaximum(3.0, 0.8)

    def test_nan_neighbor_keeps_integer_lag(self):
        """Test a NaN neighbor falls back to the integer lag."""
        curve = np.array([1.0, np.nan, 0.6, 0.4])
        assert refine_maximum(curve, KeyMaximum(2, 0.6)) == RefinedMaximum(2.0, 0.6)

    def test_offset_outside_sample_rejected(self):
        """Test an offset of a sample or more is rejected."""
        # Still rising at the bracket edge: the vertex lies far away
        curve = np.array([1.0, 0.0, 0.5, 0.9])
        assert refine_maximum(curve, KeyMaximum(2, 0.5)) == RefinedMaximum(2.0, 0.5)

    def test_offset_within_half_sample(self):
        """Test true local maxima move by at most half a sample."""
        curve = np.cos(np.linspace(0, 6 * np.pi, 300))
        for key in key_maxima(curve):
            refined = refine_maximum(curve, key)
            assert abs(refined.lag - key.lag) <= 0.5

    def test_refine_maxima_keeps_order(self):
        """Test refined maxima keep increasing lag order."""
        refined = refine_maxima(CURVE, key_maxima(CURVE))
        assert len(refined) == 2
        assert refined[0].lag < refined[1].lag


# =============================================================================
# Period selector
# =============================================================================

class TestSelectPeriod:
    """First-above-threshold rule."""

    def test_first_above_threshold_not_global_maximum(self):
        """Test the first maximum above k × n_max wins over the global maximum."""
        refined = [RefinedMaximum(100.0, 0.95), RefinedMaximum(205.0, 1.0)]
        assert select_period(refined, 0.9) == RefinedMaximum(100.0, 0.95)

    def test_skips_low_candidates(self):
        """Test candidates below the bound are skipped."""
        refined = [
            RefinedMaximum(50.0, 0.4),
            RefinedMaximum(100.0, 0.97),
            RefinedMaximum(150.0, 0.5),
            RefinedMaximum(200.0, 0.99),
        ]
        assert select_period(refined, 0.9).lag == 100.0

    def test_high_threshold_picks_global_maximum(self):
        """Test a high threshold leaves only the global maximum."""
        refined = [RefinedMaximum(100.0, 0.95), RefinedMaximum(205.0, 1.0)]
        assert select_period(refined, 0.99).lag == 205.0

    def test_zero_threshold_takes_first_positive(self):
        """Test k = 0 takes the first positive maximum."""
        refined = [RefinedMaximum(30.0, 0.1), RefinedMaximum(60.0, 0.9)]
        assert select_period(refined, 0.0).lag == 30.0

    def test_empty(self):
        """Test no refined maxima means no period."""
        assert select_period([]) is None

    def test_nothing_above_bound(self):
        """Test no period when nothing exceeds the bound."""
        assert select_period([RefinedMaximum(10.0, 0.0)]) is None

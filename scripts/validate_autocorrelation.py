#!/usr/bin/env python3
"""
Validate the FFT autocorrelation and energy recurrence against brute force.

Prints the largest absolute difference between the zero-padded FFT engine
and direct O(W²) summation for a range of window sizes, and shows how much
wraparound error a transform padded to only W + W/2 leaves in the upper
lags.

Usage:
    python scripts/validate_autocorrelation.py [--sizes 64 128 ...] [--seed N]
"""

import argparse
import numpy as np

from mpm_pitch.nsdf import (
    autocorrelation,
    direct_autocorrelation,
    energy_terms,
    direct_energy_terms,
)


def short_padded_autocorrelation(x: np.ndarray) -> np.ndarray:
    """Autocorrelation with the transform padded to W + W/2 only."""
    n = len(x)
    n_fft = n + n // 2
    spectrum = np.fft.rfft(x, n_fft)
    return np.fft.irfft(spectrum.real ** 2 + spectrum.imag ** 2, n_fft)[:n]


def main():
    parser = argparse.ArgumentParser(description=__doc__.split("\n\n")[0])
    parser.add_argument("--sizes", type=int, nargs="+",
                        default=[3, 16, 64, 127, 128, 512, 1024])
    parser.add_argument("--seed", type=int, default=0)
    args = parser.parse_args()

    rng = np.random.default_rng(args.seed)

    print("=" * 70)
    print("FFT autocorrelation vs direct summation")
    print("=" * 70)
    print(f"{'W':>6}  {'max |r_fft - r|':>16}  {'max |m_rec - m|':>16}  "
          f"{'W+W/2 padding':>14}  {'first bad lag':>13}")

    all_ok = True
    for n in args.sizes:
        x = rng.standard_normal(n)
        r_direct = direct_autocorrelation(x)
        m_direct = direct_energy_terms(x)

        r_error = np.max(np.abs(autocorrelation(x) - r_direct))
        m_error = np.max(np.abs(energy_terms(x) - m_direct))

        short_error = np.abs(short_padded_autocorrelation(x) - r_direct)
        bad = np.flatnonzero(short_error > 1e-9)
        first_bad = str(bad[0]) if len(bad) else "-"

        ok = r_error < 1e-9 and m_error < 1e-9 * max(1.0, m_direct[0])
        all_ok = all_ok and ok
        print(f"{n:>6}  {r_error:>16.3e}  {m_error:>16.3e}  "
              f"{np.max(short_error):>14.3e}  {first_bad:>13}  {'✓' if ok else '✗'}")

    print()
    print("With W + W/2 padding only lags 0..W/2 are free of wraparound;")
    print("the engine pads to W + max_lag so every returned lag is exact.")
    print(f"Overall: {'✓' if all_ok else '✗'}")


if __name__ == "__main__":
    main()

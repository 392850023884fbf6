#!/usr/bin/env python3
"""
Accuracy of MPM estimates on synthetic tones.

Estimates pure and harmonic tones over a frequency grid for several window
sizes and prints error statistics in cents, plus the lowest frequency each
window size can resolve (two periods per window).

Usage:
    python scripts/accuracy_sweep.py [--sample-rate 44100] [--threshold 0.9]
                                     [--noise 0.0] [--harmonics]
"""

import argparse
import numpy as np

from mpm_pitch import estimate_pitch


WINDOW_SIZES = [512, 1024, 2048, 4096]


def synthesize(frequency, n_samples, sample_rate, harmonics, noise, rng):
    t = np.arange(n_samples) / sample_rate
    amplitudes = [1.0, 0.5, 0.33, 0.25] if harmonics else [1.0]
    x = np.zeros(n_samples)
    for i, amplitude in enumerate(amplitudes):
        x += amplitude * np.sin(2 * np.pi * frequency * (i + 1) * t + rng.uniform(0, 2 * np.pi))
    if noise > 0:
        x += noise * rng.standard_normal(n_samples)
    return x


def main():
    parser = argparse.ArgumentParser(description=__doc__.split("\n\n")[0])
    parser.add_argument("--sample-rate", type=float, default=44100.0)
    parser.add_argument("--threshold", type=float, default=0.9)
    parser.add_argument("--noise", type=float, default=0.0,
                        help="Standard deviation of added white noise")
    parser.add_argument("--harmonics", action="store_true",
                        help="Add 3 harmonics to each tone")
    parser.add_argument("--seed", type=int, default=0)
    args = parser.parse_args()

    rng = np.random.default_rng(args.seed)
    frequencies = 55.0 * 2.0 ** (np.arange(0, 61) / 12.0)  # A1..A6

    print("=" * 70)
    print(f"MPM accuracy sweep ({args.sample_rate:.0f} Hz, k = {args.threshold}, "
          f"noise = {args.noise}, harmonics = {args.harmonics})")
    print("=" * 70)
    print(f"{'W':>6}  {'floor Hz':>9}  {'voiced':>8}  {'median ¢':>9}  "
          f"{'p95 ¢':>8}  {'max ¢':>8}  {'octave err':>10}")

    for window_size in WINDOW_SIZES:
        floor = 2.0 * args.sample_rate / window_size
        errors = []
        octave_errors = 0
        n_tested = 0

        for frequency in frequencies:
            if frequency < floor:
                continue
            n_tested += 1
            x = synthesize(frequency, window_size, args.sample_rate,
                           args.harmonics, args.noise, rng)
            estimate = estimate_pitch(x, args.sample_rate, args.threshold)
            if not estimate.voiced:
                continue
            cents = 1200.0 * np.log2(estimate.frequency / frequency)
            if abs(cents) > 600.0:
                octave_errors += 1
            else:
                errors.append(abs(cents))

        voiced = f"{len(errors) + octave_errors}/{n_tested}"
        if errors:
            errors = np.array(errors)
            print(f"{window_size:>6}  {floor:>9.1f}  {voiced:>8}  "
                  f"{np.median(errors):>9.3f}  {np.percentile(errors, 95):>8.3f}  "
                  f"{np.max(errors):>8.3f}  {octave_errors:>10}")
        else:
            print(f"{window_size:>6}  {floor:>9.1f}  {voiced:>8}  {'-':>9}  "
                  f"{'-':>8}  {'-':>8}  {octave_errors:>10}")


if __name__ == "__main__":
    main()

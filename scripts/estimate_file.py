#!/usr/bin/env python3
"""
Print an MPM pitch estimate for consecutive windows of an audio file.

Every window is estimated independently (no smoothing or tracking).

Usage:
    python scripts/estimate_file.py <audio_file> [--window 2048] [--hop 1024]
                                    [--channel 0] [--threshold 0.9] [--unit Hertz]

Requires soundfile (pip install mpm-pitch[scripts]).
"""

import argparse
import numpy as np
import soundfile as sf

from mpm_pitch import MpmConfig, PitchEstimator


def main():
    parser = argparse.ArgumentParser(description=__doc__.split("\n\n")[0])
    parser.add_argument("audio_file")
    parser.add_argument("--window", type=int, default=2048)
    parser.add_argument("--hop", type=int, default=1024)
    parser.add_argument("--channel", type=int, default=0)
    parser.add_argument("--threshold", type=float, default=None)
    parser.add_argument("--unit", default="Hertz",
                        help="Hertz, semitones, mel, erb or midi")
    args = parser.parse_args()

    data, sample_rate = sf.read(args.audio_file, dtype="float64")
    if data.ndim > 1:
        if args.channel >= data.shape[1]:
            parser.error(f"Channel {args.channel} does not exist. "
                         f"File has {data.shape[1]} channels.")
        data = data[:, args.channel]

    overrides = {}
    if args.threshold is not None:
        overrides["threshold"] = args.threshold
    estimator = PitchEstimator(MpmConfig.load(**overrides))

    print(f"# {args.audio_file}: {len(data)} samples at {sample_rate} Hz, "
          f"window {args.window}, hop {args.hop}, k = {estimator.config.threshold}")
    print(f"{'time':>9}  {args.unit:>10}  {'clarity':>8}")

    for start in range(0, len(data) - args.window + 1, args.hop):
        estimate = estimator.estimate(data[start:start + args.window], sample_rate)
        time = (start + 0.5 * args.window) / sample_rate
        value = estimate.get_value(args.unit)
        if value is None:
            print(f"{time:>9.4f}  {'--':>10}  {estimate.clarity:>8.3f}")
        else:
            print(f"{time:>9.4f}  {value:>10.3f}  {estimate.clarity:>8.3f}")


if __name__ == "__main__":
    main()

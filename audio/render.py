"""Offline WAV rendering — load audio, pitch shift, save output.

Usage:
    uv run python audio/render.py input.wav output.wav [--semitones 7]
    uv run python audio/render.py input.wav output.wav --preset presets/octave_up.json

Without --preset, uses default params (unity pitch).
"""

import argparse
import json
import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from engine.params import default_params, validate_params, ratio_to_semitones
from engine.render import render_pitch_shift
from shared.audio import load_wav, save_wav, safety_check, normalize_output


def load_preset(path):
    """Load a params dict from JSON."""
    with open(path) as f:
        return json.load(f)


def build_params(args):
    """Preset (or defaults) with command-line overrides on top."""
    if args.preset:
        params = load_preset(args.preset)
        print(f"Loaded preset: {args.preset}")
    else:
        params = default_params()
        print("Using default params")

    if args.ratio is not None:
        params["pitch_ratio"] = args.ratio
        params["semitones"] = None
    if args.semitones is not None:
        params["semitones"] = args.semitones
    if args.frame_size is not None:
        params["frame_size"] = args.frame_size
    if args.window is not None:
        params["window"] = args.window
    if args.no_resample:
        params["resample"] = False
    return params


def main(argv=None):
    parser = argparse.ArgumentParser(description="Pitch shift audio with a phase vocoder")
    parser.add_argument("input", help="Input WAV file")
    parser.add_argument("output", help="Output WAV file")
    parser.add_argument("--preset", help="JSON preset file (default params if omitted)")
    parser.add_argument("--ratio", type=float, help="Pitch ratio (2.0 = octave up)")
    parser.add_argument("--semitones", type=float, help="Pitch shift in semitones (overrides --ratio)")
    parser.add_argument("--frame-size", type=int, help="FFT frame size, power of two")
    parser.add_argument("--window", help="Window: hamming, hann, blackman, triangular, rectangular")
    parser.add_argument("--no-resample", action="store_true",
                        help="Keep the time-stretched output instead of resampling back")
    parser.add_argument("--normalize", action="store_true",
                        help="Normalize loudness before saving")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(name)s %(levelname)s: %(message)s")

    try:
        params = validate_params(build_params(args))
    except ValueError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    print(f"Loading: {args.input}")
    audio, sr = load_wav(args.input)
    print(f"  {len(audio)} samples, {len(audio)/sr:.2f}s, {sr} Hz")

    ratio = params["pitch_ratio"]
    print(f"Rendering at ratio {ratio:.4f} ({ratio_to_semitones(ratio):+.2f} st)...")
    output = render_pitch_shift(audio, params, sr=sr)

    ok, msg = safety_check(output)
    if not ok:
        print(msg, file=sys.stderr)
        return 1

    if args.normalize:
        output, warning = normalize_output(output)
        print(f"Normalized{warning}")

    save_wav(args.output, output, sr)
    print(f"Saved: {args.output} ({len(output)/sr:.2f}s)")
    return 0


if __name__ == "__main__":
    sys.exit(main())

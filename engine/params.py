"""Parameter dict schema and defaults for the phase vocoder pitch shifter.

This is the shared contract between the CLI, presets and manual scripting.
All parameter sources produce a dict in this format.
"""

import math

from primitives.fft import is_power_of_two
from primitives.window import WINDOW_TYPES

SR = 44100


def default_params() -> dict:
    """Unity pitch, 2048-sample frames (~46ms at 44.1k)."""
    return {
        # Transform length in samples. Must be a power of two.
        "frame_size": 2048,

        # Output pitch / input pitch. 2.0 = octave up, 0.5 = octave down.
        "pitch_ratio": 1.0,

        # If set, overrides pitch_ratio: ratio = 2 ** (semitones / 12)
        "semitones": None,

        # Analysis/synthesis window
        # Options: hamming, hann, blackman, triangular, rectangular
        "window": "hamming",

        # Re-wrap accumulated phase into [0, 2pi) every N frames. 0 = never.
        "wrap_interval": 16,

        # Resample the stretched output back to the input duration.
        # False leaves the raw time-stretched signal.
        "resample": True,

        # Samples fed to the streaming shifter per call when rendering
        "block_size": 4096,
    }


# Ranges for exploration (min, max). Continuous params only.
PARAM_RANGES = {
    "pitch_ratio": (0.25, 4.0),
    "semitones": (-24.0, 24.0),
    "frame_size": (256, 16384),
}


def semitones_to_ratio(semitones: float) -> float:
    return float(2.0 ** (semitones / 12.0))


def ratio_to_semitones(ratio: float) -> float:
    return float(12.0 * math.log2(ratio))


def analysis_hop_for(frame_size: int, pitch_ratio: float) -> int:
    return int((frame_size // 4) / pitch_ratio)


def validate_params(params: dict) -> dict:
    """Fill defaults, resolve semitones and reject unusable values.

    Returns a new dict; the input is not modified.
    """
    p = default_params()
    p.update(params)

    if p.get("semitones") is not None:
        p["pitch_ratio"] = semitones_to_ratio(float(p["semitones"]))

    frame_size = int(p["frame_size"])
    if not is_power_of_two(frame_size) or frame_size < 4:
        raise ValueError(f"frame_size must be a power of two >= 4, got {p['frame_size']}")
    p["frame_size"] = frame_size

    ratio = float(p["pitch_ratio"])
    if not math.isfinite(ratio) or ratio <= 0.0:
        raise ValueError(f"pitch_ratio must be finite and > 0, got {p['pitch_ratio']}")
    if analysis_hop_for(frame_size, ratio) < 1:
        raise ValueError(
            f"pitch_ratio {ratio:g} is too large for frame_size {frame_size} "
            f"(analysis hop would be 0)")
    p["pitch_ratio"] = ratio

    if p["window"] not in WINDOW_TYPES:
        raise ValueError(f"Unknown window type '{p['window']}'. Options: {list(WINDOW_TYPES.keys())}")

    p["wrap_interval"] = max(0, int(p["wrap_interval"]))
    p["block_size"] = max(1, int(p["block_size"]))
    p["resample"] = bool(p["resample"])
    return p

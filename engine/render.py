"""Offline pitch shift rendering — the single entry point.

Flow:
    Input -> StreamingPitchShifter (time-stretch by synthesis/analysis hop)
          -> trim latency -> resample back to the input duration -> Output
"""

import logging
import time
from fractions import Fraction

import numpy as np
from scipy.signal import resample_poly

from engine.params import validate_params, SR
from engine.stream import StreamingPitchShifter

log = logging.getLogger(__name__)


def fit_length(audio, n):
    """Trim or zero-pad to exactly n samples."""
    if len(audio) >= n:
        return audio[:n]
    return np.concatenate([audio, np.zeros(n - len(audio), dtype=audio.dtype)])


def resample_to_duration(stretched, analysis_hop, synthesis_hop, n_out):
    """Undo the analysis/synthesis stretch so the result is n_out samples long."""
    ratio = Fraction(analysis_hop, synthesis_hop)
    if len(stretched) == 0:
        return np.zeros(n_out)
    if ratio == 1:
        return fit_length(stretched, n_out)
    out = resample_poly(stretched, ratio.numerator, ratio.denominator)
    return fit_length(out, n_out)


def render_pitch_shift(input_audio: np.ndarray, params: dict,
                       chunk_callback=None, chunk_size=4096, sr=SR) -> np.ndarray:
    """GUI-free, scriptable entry point. CLI and tests call this same function.

    Args:
        input_audio: mono float array (samples,)
        params: parameter dict (see engine/params.py)
        chunk_callback: if provided, called with each rendered chunk.
            Return True to continue, False to stop early.
        chunk_size: samples per chunk when streaming to the callback
        sr: sample rate of input_audio, only used for the timing log

    Returns:
        mono float64 output. Same length as the input when params["resample"]
        is set, otherwise the time-stretched length.
    """
    p = validate_params(params)
    x = np.asarray(input_audio, dtype=np.float64)
    if x.ndim != 1:
        raise ValueError(f"render_pitch_shift expects mono audio, got shape {x.shape}")

    t0 = time.time()
    shifter = StreamingPitchShifter(p["frame_size"], p["pitch_ratio"],
                                    window=p["window"],
                                    wrap_interval=p["wrap_interval"])

    block_size = p["block_size"]
    pieces = [shifter.process(x[start:start + block_size])
              for start in range(0, len(x), block_size)]
    pieces.append(shifter.flush())
    stretched = np.concatenate(pieces).astype(np.float64)

    n_stretched = int(round(len(x) * shifter.stretch))
    stretched = fit_length(stretched[shifter.latency:], n_stretched)

    if p["resample"]:
        output = resample_to_duration(stretched, shifter.analysis_hop,
                                      shifter.synthesis_hop, len(x))
    else:
        output = stretched

    elapsed = time.time() - t0
    realtime = len(x) / sr
    log.info("render %.1fs audio in %.3fs (ratio %.4f, effective %.4f, frame %d, %.0fx RT)",
             realtime, elapsed, p["pitch_ratio"], shifter.stretch, p["frame_size"],
             realtime / elapsed if elapsed > 0 else float("inf"))

    if chunk_callback is not None:
        for start in range(0, len(output), chunk_size):
            if not chunk_callback(output[start:start + chunk_size]):
                break

    return output

"""Shared audio I/O and post-render checks.

Provides load_wav, save_wav, test-signal generators, and the
safety_check / normalize_output pair run on every rendered buffer.
"""

from math import gcd

import numpy as np
from scipy.io import wavfile


def load_wav(path, sr=None):
    """Load a WAV file as mono float64, optionally resampled to `sr`.

    Returns (audio_array, sample_rate).
    """
    file_sr, data = wavfile.read(path)
    if data.dtype == np.int16:
        audio = data.astype(np.float64) / 32768.0
    elif data.dtype == np.int32:
        audio = data.astype(np.float64) / 2147483648.0
    elif data.dtype == np.uint8:
        audio = (data.astype(np.float64) - 128.0) / 128.0
    else:
        audio = data.astype(np.float64)

    # Stereo to mono, the pitch shifter is single-channel
    if audio.ndim == 2:
        audio = audio.mean(axis=1)

    if sr is not None and file_sr != sr:
        from scipy.signal import resample_poly
        g = gcd(sr, file_sr)
        audio = resample_poly(audio, sr // g, file_sr // g)
        return audio, sr
    return audio, file_sr


def save_wav(path, audio, sr=44100):
    """Save audio to a 16-bit WAV file; anything above full scale is normalized."""
    peak = np.max(np.abs(audio)) if audio.size else 0.0
    if peak > 1.0:
        audio = audio / peak * 0.95
    out = (np.clip(audio, -1.0, 1.0) * 32767).astype(np.int16)
    wavfile.write(path, sr, out)


def make_sine(freq, sr=44100, seconds=1.0, amp=0.5):
    """Pure tone for testing."""
    t = np.arange(int(sr * seconds)) / sr
    return amp * np.sin(2 * np.pi * freq * t)


def make_impulse(sr=44100, seconds=0.5):
    """Generate a unit impulse (click) for testing."""
    n = int(sr * seconds)
    impulse = np.zeros(n)
    impulse[0] = 1.0
    return impulse


def safety_check(output):
    """Reject empty, non-finite or exploded output.

    Returns (ok, error_message).
    """
    if output.size == 0:
        return False, "ERROR: empty output"
    if not np.all(np.isfinite(output)):
        return False, "ERROR: output diverged (non-finite values)"
    peak = np.max(np.abs(output))
    if peak > 1e3:
        return False, f"ERROR: output exploded (peak={peak:.0e})"
    return True, ""


def normalize_output(output, target_rms=0.2, headroom=0.9):
    """Peak-normalize, pull down anything louder than target_rms, leave headroom.

    Returns (normalized_output, warning_string).
    """
    if output.size == 0:
        return output, ""
    peak = np.max(np.abs(output))
    if peak > 0:
        output = output / peak
    rms = np.sqrt(np.mean(output ** 2))
    if rms > target_rms:
        gain = target_rms / rms
        output = output * gain
        warning = f" (loud, reduced {1/gain:.0f}x)"
    else:
        warning = ""
    return output * headroom, warning

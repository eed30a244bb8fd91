"""Phase vocoder — per-frame phase tracking and resynthesis.

Signal flow (one frame):
    samples -> [Window] -> FFT -> (magnitude, phase) per bin
            -> delta vs previous frame -> minus expected advance -> unwrap
            -> scale by synthesis_hop / analysis_hop, accumulate
            -> rebuild spectrum from (magnitude, accumulated phase)
            -> IFFT -> [Window] -> output frame

The engine only handles a single frame. Extracting frames from a stream and
overlap-adding them back together lives in engine/stream.py.
"""

import logging

import numpy as np
from numba import njit

from primitives.fft import RealFFT
from primitives.window import WindowingFunction

log = logging.getLogger(__name__)

TWO_PI = 2.0 * np.pi


@njit(cache=True)
def unwrap_deltas(deltas, length):
    """Unwrap deltas[:length] in place across bins.

    Each step between consecutive raw values is wrapped into (-pi, pi] and
    added onto the previous unwrapped value.
    """
    if length < 2:
        return
    prev = deltas[0]
    for i in range(1, length):
        raw = deltas[i]
        d = raw - prev
        d = d + TWO_PI * np.floor((np.pi - d) / TWO_PI)
        prev = raw
        deltas[i] = deltas[i - 1] + d


@njit(cache=True)
def _track_phase(spectrum, n, last_phase, expected, magnitude, delta):
    for i in range(n):
        re = spectrum[2 * i]
        im = spectrum[2 * i + 1]
        phase = np.arctan2(im, re)
        magnitude[i] = np.sqrt(re * re + im * im)

        delta[i] = phase - last_phase[i]
        last_phase[i] = phase
        # What's left is the deviation from the bin centre frequency
        delta[i] -= expected[i]


@njit(cache=True)
def _accumulate_phase(spectrum, n, accumulated, delta, expected, magnitude,
                      synthesis_hop, analysis_hop):
    for i in range(n):
        accumulated[i] += (delta[i] + expected[i]) * synthesis_hop / analysis_hop
        spectrum[2 * i] = magnitude[i] * np.cos(accumulated[i])
        spectrum[2 * i + 1] = magnitude[i] * np.sin(accumulated[i])


def _readonly(a):
    v = a.view()
    v.flags.writeable = False
    return v


class PhaseVocoder:
    """Stateful single-frame pitch shifter.

    Owns its FFT, window and every buffer; nothing is shared between
    instances, and instances cannot be copied. Run independent streams
    through independent engines.

    frame_size and pitch_ratio are not validated here (the FFT rejects
    non-power-of-two sizes). Use engine.params.validate_params upstream.
    """

    def __init__(self, frame_size: int, pitch_ratio: float = 1.0,
                 window: str = "hamming", wrap_interval: int = 0):
        self._frame_size = frame_size
        self._pitch_ratio = pitch_ratio
        self._analysis_hop = int((frame_size // 4) / pitch_ratio)
        self._synthesis_hop = frame_size // 4
        self.wrap_interval = wrap_interval

        self._fft = RealFFT(frame_size)
        self._window = WindowingFunction(frame_size, window)

        # Phase a bin-centred sinusoid advances over one analysis hop
        bins = np.arange(frame_size, dtype=np.float64)
        self._expected = (TWO_PI * bins * self._analysis_hop / frame_size).astype(np.float32)

        # Tracking state, kept for the whole session
        self._last_phase = np.zeros(frame_size, dtype=np.float32)
        self._accumulated = np.zeros(frame_size, dtype=np.float32)

        # Per-frame scratch
        self._spectrum = np.zeros(frame_size * 2, dtype=np.float32)
        self._magnitude = np.zeros(frame_size, dtype=np.float32)
        self._delta = np.zeros(frame_size, dtype=np.float32)
        self._output = np.zeros(frame_size, dtype=np.float32)
        self._count = 0
        self._frames = 0

        log.debug("PhaseVocoder frame=%d ratio=%.4f hops=%d/%d window=%s",
                  frame_size, pitch_ratio, self._analysis_hop,
                  self._synthesis_hop, window)

    def __copy__(self):
        raise TypeError("PhaseVocoder owns its buffers and cannot be copied; construct a new one")

    def __deepcopy__(self, memo):
        raise TypeError("PhaseVocoder owns its buffers and cannot be copied; construct a new one")

    # --- configuration ---

    @property
    def frame_size(self) -> int:
        return self._frame_size

    @property
    def pitch_ratio(self) -> float:
        return self._pitch_ratio

    @property
    def analysis_hop_size(self) -> int:
        return self._analysis_hop

    @property
    def synthesis_hop_size(self) -> int:
        return self._synthesis_hop

    @property
    def expected_phase(self) -> np.ndarray:
        return _readonly(self._expected)

    # --- state views ---

    @property
    def last_phase(self) -> np.ndarray:
        return _readonly(self._last_phase)

    @property
    def accumulated_phase(self) -> np.ndarray:
        return _readonly(self._accumulated)

    @property
    def magnitude(self) -> np.ndarray:
        """Magnitudes measured by the last analyze() call."""
        return _readonly(self._magnitude[:self._count])

    @property
    def spectrum(self) -> np.ndarray:
        """Interleaved scratch spectrum. Contents depend on the last stage run."""
        return _readonly(self._spectrum)

    @property
    def output(self) -> np.ndarray:
        """Most recent synthesized frame. Overwritten by the next process()."""
        return _readonly(self._output[:self._count])

    @property
    def frames_processed(self) -> int:
        return self._frames

    # --- processing ---

    def process(self, input_frame, sample_count=None):
        """Resynthesize one frame into the output buffer.

        sample_count defaults to len(input_frame) and must not exceed
        frame_size. Bins 0..sample_count-1 are tracked.
        """
        x = np.asarray(input_frame, dtype=np.float32)
        n = len(x) if sample_count is None else int(sample_count)
        self.analyze(x, n)
        self.shift_phases(n)
        self.synthesize(n)

    def analyze(self, input_frame, sample_count):
        """Window + FFT, then per-bin magnitude and phase deviation."""
        n = sample_count
        spec = self._spectrum
        spec.fill(0.0)
        spec[:n] = input_frame[:n]
        self._window.multiply(spec, n)
        self._fft.forward(spec)
        _track_phase(spec, n, self._last_phase, self._expected,
                     self._magnitude, self._delta)
        self._count = n

    def shift_phases(self, sample_count):
        """Unwrap, rescale to the synthesis hop and rebuild the spectrum."""
        n = sample_count
        unwrap_deltas(self._delta, n)
        _accumulate_phase(self._spectrum, n, self._accumulated, self._delta,
                          self._expected, self._magnitude,
                          self._synthesis_hop, self._analysis_hop)
        self._frames += 1
        if self.wrap_interval and self._frames % self.wrap_interval == 0:
            np.mod(self._accumulated, TWO_PI, out=self._accumulated)

    def synthesize(self, sample_count):
        """IFFT + window into the output buffer."""
        n = sample_count
        spec = self._spectrum
        self._fft.inverse(spec)
        self._window.multiply(spec, n)
        self._output[:n] = spec[:n]
        self._count = n

    def reset(self):
        """Back to session start: zero tracking state and output."""
        self._last_phase[:] = 0.0
        self._accumulated[:] = 0.0
        self._output[:] = 0.0
        self._count = 0
        self._frames = 0

"""Streaming overlap-add around the single-frame phase vocoder.

Input side:  a ring of the last frame_size samples; every analysis_hop new
             samples the latest frame goes through the vocoder.
Output side: synthesis frames are summed at synthesis_hop offsets, and each
             completed hop is divided by the window overlap gain
             (sum of window^2 over the overlapping frames).

Because frames are read every analysis_hop and written every synthesis_hop,
the output is the input time-stretched by synthesis_hop / analysis_hop.
Resampling back to the original duration is the renderer's job.
"""

import logging

import numpy as np

from engine.phase_vocoder import PhaseVocoder
from primitives.circular_buffer import CircularBuffer
from primitives.window import WindowingFunction

log = logging.getLogger(__name__)


def overlap_gain(window_table, hop):
    """Per-position sum of window^2 for frames overlapped every `hop` samples."""
    w2 = np.asarray(window_table, dtype=np.float64) ** 2
    gain = np.zeros(hop)
    for start in range(0, len(w2), hop):
        seg = w2[start:start + hop]
        gain[:len(seg)] += seg
    return np.maximum(gain, 1e-8)


class StreamingPitchShifter:
    """Block-in, block-out wrapper: feed any block size, get completed hops back."""

    def __init__(self, frame_size: int = 2048, pitch_ratio: float = 1.0,
                 window: str = "hamming", wrap_interval: int = 16):
        self.vocoder = PhaseVocoder(frame_size, pitch_ratio, window=window,
                                    wrap_interval=wrap_interval)
        self.frame_size = frame_size
        self.analysis_hop = self.vocoder.analysis_hop_size
        self.synthesis_hop = self.vocoder.synthesis_hop_size

        self._input = CircularBuffer(frame_size)
        self._since_frame = 0
        self._ola = np.zeros(frame_size, dtype=np.float64)
        self._gain = overlap_gain(WindowingFunction(frame_size, window).table,
                                  self.synthesis_hop)

    @property
    def stretch(self) -> float:
        """Effective time-stretch (and, after resampling, pitch) factor."""
        return self.synthesis_hop / self.analysis_hop

    @property
    def latency(self) -> int:
        """Output samples before input sample 0 appears in the output.

        Frame m is centred on input sample m*Ra - N/2 and its synthesized
        copy on output sample (m-1)*Rs + N/2. Equal to N - Ra at unity.
        """
        n = self.frame_size
        return int(round((n / 2 - self.analysis_hop) * self.stretch + n / 2))

    def process(self, block) -> np.ndarray:
        """Consume a mono block, return every output sample completed by it."""
        x = np.asarray(block, dtype=np.float32)
        hops = []
        pos = 0
        while pos < len(x):
            take = min(len(x) - pos, self.analysis_hop - self._since_frame)
            self._input.write_block(x[pos:pos + take])
            pos += take
            self._since_frame += take
            if self._since_frame == self.analysis_hop:
                self._since_frame = 0
                hops.append(self._next_hop())
        if not hops:
            return np.zeros(0, dtype=np.float32)
        return np.concatenate(hops)

    def _next_hop(self):
        n = self.frame_size
        hop = self.synthesis_hop
        self.vocoder.process(self._input.latest(n), n)
        self._ola += self.vocoder.output

        out = (self._ola[:hop] / self._gain).astype(np.float32)
        self._ola[:-hop] = self._ola[hop:]
        self._ola[-hop:] = 0.0
        return out

    def flush(self) -> np.ndarray:
        """Push a frame of silence through to drain the overlap-add tail."""
        return self.process(np.zeros(self.frame_size, dtype=np.float32))

    def reset(self):
        self.vocoder.reset()
        self._input.reset()
        self._since_frame = 0
        self._ola[:] = 0.0

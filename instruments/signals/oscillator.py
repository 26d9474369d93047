import numpy as np
from enum import Enum, auto
from .base import Signal


_MIN_FREQ = 1e-3  # Hz, keeps the period finite


class WaveType(Enum):
    SINE = auto()
    SQUARE = auto()
    SAW = auto()
    TRIANGLE = auto()


def _centered_frac(x: np.ndarray) -> np.ndarray:
    # x - round(x), in [-0.5, 0.5)
    return x - np.floor(x + 0.5)


class Oscillator(Signal):
    """
    Naive (aliased) periodic oscillator driven by a sample counter.
    The counter is advanced before each sample, so the first sample uses n=1.
    Frequency may change between samples; only the current value is used.
    """

    def __init__(self, freq: float, wave_type: WaveType = WaveType.SINE, sample_rate: int = 44000):
        self.frequency = float(freq)
        self.wave_type = wave_type
        self.sample_rate = int(sample_rate)
        self.num_sample = 0
        self.state = 0.0   # last saw/triangle value

    def _shape(self, n: np.ndarray, freqs: np.ndarray) -> np.ndarray:
        sr = float(self.sample_rate)
        # a bend can push the target below zero; every shape holds at near-DC
        freqs = np.maximum(freqs, _MIN_FREQ)
        if self.wave_type is WaveType.SINE:
            return np.sin(2.0 * np.pi * freqs * n / sr)

        period = sr / freqs
        if self.wave_type is WaveType.SQUARE:
            whole = np.maximum(1, period.astype(np.int64))
            half = (period / 2.0).astype(np.int64)
            return np.where(n.astype(np.int64) % whole <= half, 1.0, -1.0)

        frac = _centered_frac(n / period)
        if self.wave_type is WaveType.SAW:
            return 2.0 * frac
        # triangle
        return 2.0 * np.abs(2.0 * frac) - 1.0

    def render(self, freqs: np.ndarray) -> np.ndarray:
        freqs = np.asarray(freqs, dtype=np.float64)
        frames = freqs.shape[0]
        if frames == 0:
            return np.zeros(0, dtype=np.float32)

        n = self.num_sample + np.arange(1, frames + 1, dtype=np.float64)
        out = self._shape(n, freqs)

        self.num_sample += frames
        self.frequency = float(freqs[-1])
        if self.wave_type in (WaveType.SAW, WaveType.TRIANGLE):
            self.state = float(out[-1])
        return out.astype(np.float32)

    def next_sample(self) -> float:
        return float(self.render(np.array([self.frequency]))[0])

    def __iter__(self):
        return self

    def __next__(self) -> float:
        return self.next_sample()

    def reset(self) -> None:
        self.num_sample = 0
        self.state = 0.0

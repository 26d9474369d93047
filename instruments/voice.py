import threading
import numpy as np
from typing import Any

from .signals.oscillator import Oscillator, WaveType
from .envelopes.adsr import ADSRParams, EnvelopeController
from .glide import FrequencySmoother


class SharedValue:
    """
    One lock guarding exactly one value. Never held while acquiring
    another lock, and only for the duration of a single read or write.
    """
    def __init__(self, value: Any):
        self._value = value
        self._lock = threading.Lock()

    def get(self) -> Any:
        with self._lock:
            return self._value

    def set(self, value: Any) -> None:
        with self._lock:
            self._value = value

    def swap(self, value: Any) -> Any:
        with self._lock:
            old, self._value = self._value, value
            return old


class VoiceHandle:
    """
    The part of a voice that other threads may touch: target frequency,
    release flag, retrigger flag. Everything else belongs to the render loop.
    """
    def __init__(self, freq: float):
        self._target = SharedValue(float(freq))
        self._releasing = SharedValue(False)
        self._retrigger = SharedValue(False)

    @property
    def target_frequency(self) -> float:
        return self._target.get()

    @target_frequency.setter
    def target_frequency(self, freq: float) -> None:
        self._target.set(float(freq))

    @property
    def releasing(self) -> bool:
        return self._releasing.get()

    def release(self) -> None:
        self._releasing.set(True)

    def retrigger(self) -> None:
        self._releasing.set(False)
        self._retrigger.set(True)

    def take_retrigger(self) -> bool:
        return self._retrigger.swap(False)


class Voice:
    """
    One note performance bound to a fixed pool slot.
    Oscillator, envelope and smoother are only touched from `render`.
    """

    def __init__(self, note: int, freq: float, wave_type: WaveType, adsr: ADSRParams,
                 slot: int, sample_rate: int = 44000, envelope_tick_ms: float = 1.0,
                 glide_step: float = 1.0, glide_tick_samples: int = 1,
                 release_from_current: bool = False):
        self.note = int(note)
        self.base_frequency = float(freq)
        self.wave_type = wave_type
        self.adsr = adsr
        self._slot = int(slot)
        self.sample_rate = int(sample_rate)
        self.handle = VoiceHandle(freq)

        self._envelope_tick_ms = float(envelope_tick_ms)
        self._glide_step = float(glide_step)
        self._glide_tick_samples = int(glide_tick_samples)
        self._release_from_current = bool(release_from_current)
        self._build(self.base_frequency)

    def _build(self, freq: float) -> None:
        self.oscillator = Oscillator(freq, self.wave_type, self.sample_rate)
        self.envelope = EnvelopeController(self.adsr, self.sample_rate,
                                           tick_ms=self._envelope_tick_ms,
                                           release_from_current=self._release_from_current)
        self.smoother = FrequencySmoother(freq, step=self._glide_step,
                                          tick_samples=self._glide_tick_samples)

    @property
    def slot(self) -> int:
        return self._slot

    def release(self) -> None:
        self.handle.release()

    def retrigger(self) -> None:
        self.handle.retrigger()

    def stop(self) -> None:
        self.envelope.stop()

    def finished(self) -> bool:
        return self.envelope.finished()

    def render(self, frames: int) -> np.ndarray:
        if self.handle.take_retrigger() and not self.finished():
            self._build(self.handle.target_frequency)
        if self.handle.releasing:
            self.envelope.request_release()

        freqs = self.smoother.render(self.handle.target_frequency, frames)
        raw = self.oscillator.render(freqs)
        env = self.envelope.render(frames)
        return (raw * env).astype(np.float32)

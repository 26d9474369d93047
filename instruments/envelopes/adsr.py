import logging
import numpy as np
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional
from .base import Envelope

logger = logging.getLogger(__name__)


class InvalidEnvelopeConfiguration(ValueError):
    pass


class ADSRState(Enum):
    ATTACK = auto()
    DECAY = auto()
    SUSTAIN = auto()   # hold until release
    RELEASE = auto()
    SILENT = auto()    # terminal


@dataclass(frozen=True)
class ADSRParams:
    """Durations in milliseconds, sustain as a linear level in [0,1]."""
    attack: float = 10.0
    decay: float = 10.0
    sustain: float = 1.0
    release: float = 10.0

    def __post_init__(self):
        for name in ("attack", "decay", "release"):
            if getattr(self, name) < 0:
                raise InvalidEnvelopeConfiguration(f"{name} must be >= 0 ms, got {getattr(self, name)}")
        if not 0.0 <= self.sustain <= 1.0:
            raise InvalidEnvelopeConfiguration(f"sustain must be in [0, 1], got {self.sustain}")


class EnvelopeController(Envelope):
    """
    Linear ADSR amplitude state machine, ticked at a fixed interval
    (default 1 ms) rather than once per sample.

    Stage lengths are counted in samples from creation. Each tick moves the
    amplitude by the per-sample step times the samples per tick. The release
    ramp uses sustain / release_samples as its step regardless of the level
    reached when release starts, unless `release_from_current` is set.
    """

    def __init__(self, params: ADSRParams, sample_rate: int = 44000,
                 tick_ms: float = 1.0, release_from_current: bool = False):
        self.params = params
        self.sample_rate = int(sample_rate)
        self.tick_samples = max(1, int(round(self.sample_rate * tick_ms / 1000.0)))
        self.release_from_current = bool(release_from_current)

        per_ms = self.sample_rate / 1000.0
        self._A = self._samples_for(params.attack * per_ms, "attack")
        self._D = self._samples_for(params.decay * per_ms, "decay")
        self._R = self._samples_for(params.release * per_ms, "release")

        self._attack_step = 1.0 / self._A
        self._decay_step = (1.0 - params.sustain) / self._D
        self._release_step = params.sustain / self._R

        self.reset()

    @staticmethod
    def _samples_for(n: float, name: str) -> int:
        if n < 1:
            logger.debug("%s shorter than one sample, clamped", name)
            return 1
        return int(n)

    def reset(self) -> None:
        self._state = ADSRState.ATTACK
        self._amp = 0.0
        self._samples = 0                     # envelope clock, in samples
        self._release_requested = False
        self._release_start: Optional[int] = None
        self._until_tick = 0                  # samples left before the next tick

    # ---- control ----
    @property
    def state(self) -> ADSRState:
        return self._state

    @property
    def amplitude(self) -> float:
        return self._amp

    def request_release(self) -> None:
        self._release_requested = True

    def stop(self) -> None:
        self._state = ADSRState.SILENT
        self._amp = 0.0

    def finished(self) -> bool:
        return self._state is ADSRState.SILENT

    # ---- ticking ----
    def tick(self) -> float:
        if self._state is ADSRState.SILENT:
            return self._amp

        now = self._samples
        n = self.tick_samples

        if self._release_requested and self._release_start is None:
            # first tick after the request only marks where release starts
            self._release_start = now
            self._state = ADSRState.RELEASE
            if self.release_from_current:
                self._release_step = self._amp / self._R

        elif self._state is ADSRState.RELEASE:
            if now - self._release_start < self._R:
                self._amp = max(0.0, self._amp - self._release_step * n)
            else:
                self._amp = 0.0
                self._state = ADSRState.SILENT

        elif now < self._A:
            self._state = ADSRState.ATTACK
            self._amp = min(1.0, self._amp + self._attack_step * n)

        elif now - self._A < self._D:
            self._state = ADSRState.DECAY
            self._amp = max(self.params.sustain, self._amp - self._decay_step * n)

        elif self._state is not ADSRState.SUSTAIN:
            # stages shorter than a tick can be skipped entirely; land on the level
            self._state = ADSRState.SUSTAIN
            self._amp = self.params.sustain

        self._samples += n
        return self._amp

    def render(self, frames: int) -> np.ndarray:
        out = np.zeros(frames, dtype=np.float32)
        idx = 0
        while idx < frames and self._state is not ADSRState.SILENT:
            if self._until_tick == 0:
                self.tick()
                self._until_tick = self.tick_samples
            n = min(frames - idx, self._until_tick)
            out[idx:idx + n] = self._amp
            idx += n
            self._until_tick -= n
        return out

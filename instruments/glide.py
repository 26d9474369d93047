import numpy as np


class FrequencySmoother:
    """
    Moves a voice's current frequency toward its target by a fixed step
    (Hz) on every tick. Glide speed depends on the tick rate only, so
    choose `tick_samples` deliberately.
    """

    def __init__(self, freq: float, step: float = 1.0, tick_samples: int = 1):
        self.current = float(freq)
        self.step = float(step)
        self.tick_samples = max(1, int(tick_samples))
        self._phase = 0   # samples elapsed modulo tick_samples

    def tick(self, target: float) -> float:
        diff = float(target) - self.current
        if abs(diff) <= self.step:
            self.current = float(target)
        else:
            self.current += self.step if diff > 0 else -self.step
        return self.current

    def render(self, target: float, frames: int) -> np.ndarray:
        """Per-sample frequencies for the next `frames` samples; a tick lands on each
        sample whose running index is a multiple of `tick_samples`."""
        target = float(target)
        diff = target - self.current
        if diff == 0.0 or frames <= 0:
            self._phase = (self._phase + frames) % self.tick_samples
            return np.full(frames, self.current, dtype=np.float64)

        T = self.tick_samples
        k = np.arange(frames)
        first = (-self._phase) % T
        ticks = np.where(k >= first, (k - first) // T + 1, 0)

        moved = np.minimum(ticks * self.step, abs(diff))
        freqs = self.current + np.sign(diff) * moved
        # snap exactly once the distance is covered
        freqs[moved >= abs(diff)] = target

        self.current = float(freqs[-1])
        self._phase = (self._phase + frames) % T
        return freqs

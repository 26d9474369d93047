from typing import Protocol
import numpy as np
import matplotlib.pyplot as plt


class Signal(Protocol):
    """A stateful, unlimited-time signal generator."""
    sample_rate: int

    def render(self, freqs: np.ndarray) -> np.ndarray:
        """Return one sample (float32 mono) per entry of `freqs`, advancing internal state."""
        ...

    def reset(self) -> None:
        """Reset internal state/phase (optional)."""
        ...

    def plot(self, freq: float, frames: int):
        """
        Render `frames` samples at a constant `freq` and plot them.
        """
        y = self.render(np.full(frames, float(freq)))
        t = np.arange(frames) / self.sample_rate
        fig, ax = plt.subplots(figsize=(8, 3))
        ax.plot(t, y, lw=1.2)
        ax.set_title(f"{self.__class__.__name__} ({freq:.1f} Hz)")
        ax.set_xlabel("Time [s]")
        ax.set_ylabel("Amplitude")
        ax.grid(True, alpha=0.3)
        fig.tight_layout()
        return fig, ax

from typing import Protocol, Optional
import matplotlib.pyplot as plt
import numpy as np


class Envelope(Protocol):
    sample_rate: int
    tick_samples: int

    def tick(self) -> float:
        """Advance by one tick interval and return the new amplitude."""
        ...
    def request_release(self) -> None: ...
    def render(self, frames: int) -> np.ndarray:
        """Return envelope amplitude for next `frames` samples (float32)."""
        ...
    def finished(self) -> bool:
        """True if envelope is at rest and voice can be freed."""
        ...

    def plot(self, t_total_ms: float, t_release_ms: Optional[float] = None):
        """Plot `t_total_ms` of envelope from creation, with optional release at `t_release_ms`."""
        sr = self.sample_rate
        frames_total = int(float(t_total_ms) * sr / 1000.0)
        assert frames_total > 0

        if t_release_ms is None:
            off_frame = frames_total
        else:
            off_frame = min(frames_total, max(0, int(t_release_ms * sr / 1000.0)))

        y = np.zeros(frames_total, dtype=np.float32)
        if off_frame:
            y[:off_frame] = self.render(off_frame)
        if off_frame < frames_total:
            self.request_release()
            y[off_frame:] = self.render(frames_total - off_frame)

        t = np.arange(frames_total) * 1000.0 / sr
        fig, ax = plt.subplots(figsize=(8, 3))
        ax.plot(t, y, lw=1.2)
        ax.set_ylim(-0.05, 1.05)
        ax.set_xlabel("Time [ms]")
        ax.set_ylabel("Envelope")
        title = f"{self.__class__.__name__} (start @0ms"
        if t_release_ms is not None:
            title += f", release @{t_release_ms:.1f}ms"
        title += f", {t_total_ms:.1f}ms @ {sr}Hz)"
        ax.set_title(title)
        ax.grid(True, alpha=0.3)
        fig.tight_layout()
        return fig, ax

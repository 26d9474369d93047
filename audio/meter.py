import math
import threading

import numpy as np

_EPS = 1e-12


def lin_to_dbfs(x: float) -> float:
    return 20.0 * math.log10(max(_EPS, x))


class BlockMeter:
    """
    Windowed level and load meter for the output stream.

    `observe` is fed every block from the audio callback, before and after
    limiting, together with the number of sounding voices. `drain` is called
    from the logging thread and starts a new window.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._clear()

    def _clear(self):
        self.frames = 0
        self.blocks = 0
        self.energy = 0.0
        self.peak_in = 0.0
        self.peak_out = 0.0
        self.limited_blocks = 0
        self.max_voices = 0

    def observe(self, dry: np.ndarray, wet: np.ndarray, voices: int = 0) -> None:
        if not wet.size:
            return
        peak_in = float(np.max(np.abs(dry)))
        peak_out = float(np.max(np.abs(wet)))
        energy = float(np.sum(wet.astype(np.float64) ** 2))
        limited = bool(np.any(np.abs(wet - dry) > 1e-7))
        with self._lock:
            self.frames += wet.size
            self.blocks += 1
            self.energy += energy
            self.peak_in = max(self.peak_in, peak_in)
            self.peak_out = max(self.peak_out, peak_out)
            self.limited_blocks += limited
            self.max_voices = max(self.max_voices, voices)

    def drain(self) -> dict:
        with self._lock:
            rms = math.sqrt(self.energy / self.frames) if self.frames else 0.0
            window = {
                "frames": self.frames,
                "blocks": self.blocks,
                "peak_in_db": lin_to_dbfs(self.peak_in),
                "peak_out_db": lin_to_dbfs(self.peak_out),
                "rms_db": lin_to_dbfs(rms),
                "limited_blocks": self.limited_blocks,
                "max_voices": self.max_voices,
            }
            self._clear()
        return window

import logging
import threading
import time
from typing import Callable, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


class InputPoller:
    """
    Polls every digital input from one thread and calls `on_rise(id)` on a
    rising edge. A rising edge within `debounce` seconds of the last accepted
    one on the same input is ignored.
    """

    def __init__(self, read_level: Callable[[int], bool], inputs: Iterable[int],
                 on_rise: Callable[[int], None], debounce: float = 0.05,
                 interval: float = 0.001, clock: Callable[[], float] = time.monotonic):
        self.read_level = read_level
        self.inputs = list(inputs)
        self.on_rise = on_rise
        self.debounce = float(debounce)
        self.interval = float(interval)
        self._clock = clock

        self._prev: Dict[int, bool] = {i: False for i in self.inputs}
        self._last_fire: Dict[int, float] = {}
        self._stop_evt = threading.Event()
        self._th: Optional[threading.Thread] = None

    def poll_once(self) -> List[int]:
        fired = []
        now = self._clock()
        for i in self.inputs:
            level = bool(self.read_level(i))
            rising = level and not self._prev[i]
            self._prev[i] = level
            if not rising:
                continue
            last = self._last_fire.get(i)
            if last is not None and now - last < self.debounce:
                logger.debug("input %s bounce ignored", i)
                continue
            self._last_fire[i] = now
            fired.append(i)
            try:
                self.on_rise(i)
            except Exception:
                logger.exception("handler for input %s failed", i)
        return fired

    def start(self):
        self._stop_evt.clear()
        def run():
            while not self._stop_evt.is_set():
                self.poll_once()
                self._stop_evt.wait(self.interval)
        self._th = threading.Thread(target=run, name="InputPoller", daemon=True)
        self._th.start()

    def stop(self):
        self._stop_evt.set()
        if self._th:
            self._th.join(timeout=1.0)
            self._th = None


class MomentaryInputs:
    """
    Software stand-in for push buttons: `press(id)` makes the next read of
    that input high, every read after it low again.
    """

    def __init__(self):
        self._pressed = set()
        self._lock = threading.Lock()

    def press(self, input_id: int) -> None:
        with self._lock:
            self._pressed.add(input_id)

    def read(self, input_id: int) -> bool:
        with self._lock:
            if input_id in self._pressed:
                self._pressed.discard(input_id)
                return True
            return False

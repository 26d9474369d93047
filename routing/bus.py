import logging
import queue
from typing import List, Union
from midi.messages import NoteOn, NoteOff, CC, PitchBend

logger = logging.getLogger(__name__)

Event = Union[NoteOn, NoteOff, CC, PitchBend]

class EventBus:
    def __init__(self, maxsize=1024) -> None:
        self.q = queue.Queue(maxsize=maxsize)
        self.dropped = 0

    def post(self, e: Event) -> bool:
        try:
            self.q.put_nowait(e)
            return True
        except queue.Full:
            # never block an event source
            self.dropped += 1
            logger.warning("event bus full, dropped %r", e)
            return False

    def drain(self, max_events=128) -> List[Event]:
        evs = []
        try:
            while len(evs) < max_events:
                evs.append(self.q.get_nowait())
        except queue.Empty:
            pass
        return evs

import logging
import numpy as np
from dataclasses import dataclass
from typing import List, Optional

from .voice import Voice

logger = logging.getLogger(__name__)

MAX_POLYPHONY = 16


class VoiceAllocationExhausted(RuntimeError):
    pass


@dataclass
class PlaybackSlot:
    voice: Optional[Voice] = None
    paused: bool = False

    def is_idle(self) -> bool:
        return self.voice is None

    def clear(self) -> None:
        self.voice = None
        self.paused = False


class VoicePool:
    """
    Fixed set of playback slots, at most one voice per slot.
    Allocation prefers an idle slot, then reclaims a paused one; otherwise fails.
    Owned by the thread that routes events and renders.
    """

    def __init__(self, capacity: int = MAX_POLYPHONY):
        if capacity < 1:
            raise ValueError("pool capacity must be >= 1")
        self.capacity = int(capacity)
        self._slots: List[PlaybackSlot] = [PlaybackSlot() for _ in range(self.capacity)]

    def _slot(self, idx: int) -> PlaybackSlot:
        if not 0 <= idx < self.capacity:
            raise IndexError(f"slot {idx} out of range (capacity {self.capacity})")
        return self._slots[idx]

    ###########################################################################
    ##                            ALLOCATION                                 ##
    ###########################################################################

    def acquire(self) -> int:
        for i, slot in enumerate(self._slots):
            if slot.is_idle():
                return i
        for i, slot in enumerate(self._slots):
            if slot.paused:
                if slot.voice is not None:
                    slot.voice.stop()
                    logger.debug("reclaiming paused slot %d (note %d)", i, slot.voice.note)
                slot.clear()
                return i
        raise VoiceAllocationExhausted(f"all {self.capacity} slots busy")

    def allocate(self) -> Optional[int]:
        try:
            return self.acquire()
        except VoiceAllocationExhausted:
            return None

    def start(self, idx: int, voice: Voice) -> None:
        slot = self._slot(idx)
        if slot.voice is not None and slot.voice is not voice:
            raise ValueError(f"slot {idx} already bound to note {slot.voice.note}")
        if voice.slot != idx:
            raise ValueError(f"voice belongs to slot {voice.slot}, not {idx}")
        slot.voice = voice
        slot.paused = False

    ###########################################################################
    ##                          SLOT CONTROL                                 ##
    ###########################################################################

    def voice_at(self, idx: int) -> Optional[Voice]:
        return self._slot(idx).voice

    def owns(self, voice: Voice) -> bool:
        return self._slot(voice.slot).voice is voice

    def is_idle(self, idx: int) -> bool:
        return self._slot(idx).is_idle()

    def is_paused(self, idx: int) -> bool:
        return self._slot(idx).paused

    def pause(self, idx: int) -> None:
        slot = self._slot(idx)
        if slot.voice is not None:
            slot.paused = True

    def resume(self, idx: int) -> None:
        self._slot(idx).paused = False

    def stop(self, idx: int) -> None:
        slot = self._slot(idx)
        if slot.voice is not None:
            slot.voice.stop()
        slot.clear()

    def active_count(self) -> int:
        return sum(1 for s in self._slots if not s.is_idle())

    ###########################################################################
    ##                             RENDERING                                 ##
    ###########################################################################

    def render(self, frames: int) -> np.ndarray:
        mix = np.zeros(frames, dtype=np.float32)
        for i, slot in enumerate(self._slots):
            v = slot.voice
            if v is None or slot.paused:
                continue
            try:
                mix += v.render(frames)
            except Exception:
                # drop only this voice; the rest of the block still plays
                logger.exception("voice in slot %d failed (note %d)", i, v.note)
                v.stop()
                slot.clear()
                continue
            if v.finished():
                logger.debug("slot %d free (note %d released)", i, v.note)
                slot.clear()
        return mix

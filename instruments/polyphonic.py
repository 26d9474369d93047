import logging
import numpy as np
from typing import Callable, Dict, Iterable, Optional, Set

from midi.messages import NoteOn, NoteOff, CC, PitchBend
from .midi import midi_to_freq_equal_tempered
from .pool import VoicePool, VoiceAllocationExhausted, MAX_POLYPHONY
from .settings import SynthSettings
from .voice import Voice

logger = logging.getLogger(__name__)

SUSTAIN_CC = 64
BEND_CENTER = 64


class PolySynth:
    """
    Note registry and sustain manager on top of a fixed voice pool.
    One voice per note id. Sustain pedal supported, pitch bend retunes
    every registered voice.
    1/sqrt(N) gain comp + master, where N = nb of voices

    Event handlers and `render` are meant to run on one thread (the audio
    callback draining the event bus). Voices only share their handle
    (target frequency, release flag) with other threads.
    """

    def __init__(self, settings: Optional[SynthSettings] = None,
                 sample_rate: int = 44000, max_polyphony: int = MAX_POLYPHONY,
                 envelope_tick_ms: float = 1.0, glide_step: float = 1.0,
                 glide_tick_samples: int = 1, master: float = 0.6, alpha: float = 0.25,
                 release_from_current: bool = False,
                 midi_to_freq: Callable[[int], float] = midi_to_freq_equal_tempered):
        self.settings = settings if settings is not None else SynthSettings()
        self.sample_rate = int(sample_rate)
        self.pool = VoicePool(max_polyphony)
        self._midi_to_freq = midi_to_freq

        self._voice_kwargs = dict(sample_rate=self.sample_rate,
                                  envelope_tick_ms=envelope_tick_ms,
                                  glide_step=glide_step,
                                  glide_tick_samples=glide_tick_samples,
                                  release_from_current=release_from_current)

        self._notes: Dict[int, Voice] = {}
        self._sustained: Set[int] = set()
        self.dropped_notes = 0

        self.master = float(master)
        self.alpha = alpha
        self._last_gain = self.master

    ###########################################################################
    ##                            NOTE EVENTS                                ##
    ###########################################################################

    def _live(self, voice: Voice) -> bool:
        return self.pool.owns(voice) and not voice.finished()

    def note_on(self, note: int, velocity: int = 127) -> Optional[Voice]:
        # velocity is ignored
        note = int(note)
        existing = self._notes.get(note)
        if existing is not None:
            if self._live(existing):
                existing.retrigger()
                self.pool.resume(existing.slot)
                return existing
            # slot was reclaimed underneath us
            del self._notes[note]
            self._sustained.discard(note)

        try:
            slot = self.pool.acquire()
        except VoiceAllocationExhausted:
            self.dropped_notes += 1
            logger.info("max polyphony hit, note %d dropped", note)
            return None

        voice = Voice(note, self._midi_to_freq(note),
                      self.settings.waveform, self.settings.adsr,
                      slot, **self._voice_kwargs)
        self.pool.start(slot, voice)
        self._notes[note] = voice
        logger.debug("note %d -> slot %d (%s)", note, slot, voice.wave_type.name)
        return voice

    def note_off(self, note: int) -> None:
        note = int(note)
        if note in self._sustained:
            return
        voice = self._notes.pop(note, None)
        if voice is not None:
            voice.release()

    def cc(self, control: int, value: int) -> None:
        if control == SUSTAIN_CC:
            self.sustain(value)
        else:
            logger.debug("unhandled CC %d = %d", control, value)

    def sustain(self, value: int) -> None:
        if value >= 64:
            for note, voice in self._notes.items():
                if self._live(voice) and not self.pool.is_paused(voice.slot):
                    self._sustained.add(note)
        else:
            for note in self._sustained:
                voice = self._notes.pop(note, None)
                if voice is not None:
                    voice.release()
            self._sustained.clear()

    def pitch_bend(self, value: int) -> None:
        offset = float(int(value) - BEND_CENTER)
        for voice in self._notes.values():
            voice.handle.target_frequency = voice.base_frequency + offset

    ###########################################################################
    ##                          EVENT ROUTING                                ##
    ###########################################################################

    def route_event(self, e: object) -> None:
        if isinstance(e, NoteOn):
            self.note_on(e.note, e.velocity)
        elif isinstance(e, NoteOff):
            self.note_off(e.note)
        elif isinstance(e, CC):
            self.cc(e.control, e.value)
        elif isinstance(e, PitchBend):
            self.pitch_bend(e.value)
        else:
            logger.warning("ignoring unknown event %r", e)

    def route_events(self, events: Iterable[object]) -> None:
        for e in events:
            self.route_event(e)

    ###########################################################################
    ##                             RENDERING                                 ##
    ###########################################################################

    def _smoothing_gain(self, target_gain):
        """
        Smoothes gain changes
        """
        return (1 - self.alpha) * self._last_gain + self.alpha * target_gain

    def render(self, frames: int) -> np.ndarray:
        n_start = max(1, self.pool.active_count())
        mix = self.pool.render(frames)

        gain = self._smoothing_gain(self.master / np.sqrt(n_start))
        self._last_gain = gain
        mix *= gain
        return mix

    ###########################################################################
    ##                              QUERIES                                  ##
    ###########################################################################

    def num_active_voices(self) -> int:
        return self.pool.active_count()

    def voice_for(self, note: int) -> Optional[Voice]:
        return self._notes.get(int(note))

    @property
    def sustained_notes(self) -> Set[int]:
        return set(self._sustained)

    @property
    def registered_notes(self) -> Set[int]:
        return set(self._notes)

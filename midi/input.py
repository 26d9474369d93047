import logging
import threading
from contextlib import ExitStack
from typing import List, Optional

import mido
from mido.ports import multi_receive

from midi.messages import NoteOn, NoteOff, CC, PitchBend
from routing.bus import EventBus, Event

logger = logging.getLogger(__name__)


class NoEventSourceAvailable(RuntimeError):
    pass


def decode_message(msg: mido.Message) -> Optional[Event]:
    """Map a mido message to a bus event, or None for anything we don't play."""
    ch = getattr(msg, 'channel', 0)
    if msg.type == 'note_on' and msg.velocity > 0:
        return NoteOn(msg.note, msg.velocity, ch)
    if msg.type == 'note_off' or (msg.type == 'note_on' and msg.velocity == 0):
        return NoteOff(msg.note, 0, ch)
    if msg.type == 'control_change':
        return CC(msg.control, msg.value, ch)
    if msg.type == 'pitchwheel':
        # 14-bit signed -> 7-bit MSB, 64 = centre
        return PitchBend((msg.pitch + 8192) >> 7, ch)
    return None


def select_ports(names: List[str], port_hint: Optional[str] = None) -> List[str]:
    if not names:
        raise NoEventSourceAvailable("no MIDI input port found")
    if port_hint:
        chosen = [n for n in names if port_hint.lower() in n.lower()]
        if chosen:
            return chosen
        logger.warning("no MIDI input matches %r, listening on all", port_hint)
    return list(names)


def start_midi_listener(bus: EventBus, port_hint: Optional[str] = None,
                        stop_evt: Optional[threading.Event] = None,
                        poll_interval: float = 0.001) -> threading.Thread:
    """
    Open the MIDI inputs (all of them, or those containing `port_hint`) and
    forward decoded events to the bus from one daemon thread.
    Raises NoEventSourceAvailable before starting if there is no input at all.
    """
    names = select_ports(mido.get_input_names(), port_hint)
    stop_evt = stop_evt or threading.Event()

    def run():
        with ExitStack() as stack:
            ports = [stack.enter_context(mido.open_input(n)) for n in names]
            logger.info("MIDI in: %s", ", ".join(names))
            while not stop_evt.is_set():
                for msg in multi_receive(ports, block=False):
                    e = decode_message(msg)
                    if e is None:
                        logger.debug("ignored MIDI %s", msg)
                        continue
                    bus.post(e)
                stop_evt.wait(poll_interval)
        logger.info("MIDI listener stopped")

    th = threading.Thread(target=run, name="MidiListener", daemon=True)
    th.start()
    return th

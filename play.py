import argparse
import logging
import sys
import threading

from audio.config import EngineConfig
from audio.engine import AudioEngine
from controls.panel import ControlPanel
from controls.poller import InputPoller, MomentaryInputs
from instruments.polyphonic import PolySynth
from instruments.settings import SynthSettings
from midi.input import start_midi_listener, NoEventSourceAvailable
from routing.bus import EventBus

logger = logging.getLogger("play")


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Polyphonic MIDI synth")
    p.add_argument("--port", help="only listen on MIDI inputs containing this text")
    p.add_argument("--blocksize", type=int)
    p.add_argument("--sample-rate", type=int)
    p.add_argument("--polyphony", type=int, dest="max_polyphony")
    p.add_argument("--release-from-current", action="store_true", default=None,
                   help="ramp release down from the level reached, not from sustain")
    p.add_argument("--log-level", default="INFO")
    return p.parse_args(argv)


def build(cfg: EngineConfig):
    bus = EventBus()
    settings = SynthSettings()
    synth = PolySynth(settings,
                      sample_rate=cfg.sample_rate,
                      max_polyphony=cfg.max_polyphony,
                      envelope_tick_ms=cfg.envelope_tick_ms,
                      glide_step=cfg.glide_step_hz,
                      glide_tick_samples=cfg.glide_tick_samples,
                      master=cfg.master,
                      release_from_current=cfg.release_from_current)
    engine = AudioEngine(synth, bus,
                         blocksize=cfg.blocksize, channels=cfg.channels,
                         pre_gain=cfg.pre_gain, limiter_drive=cfg.limiter_drive,
                         meter_period=cfg.meter_period)
    return bus, settings, synth, engine


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO),
                        format="%(asctime)s %(levelname)s [%(name)s] %(message)s")

    cfg = EngineConfig().updated(blocksize=args.blocksize,
                                 sample_rate=args.sample_rate,
                                 max_polyphony=args.max_polyphony,
                                 release_from_current=args.release_from_current)
    bus, settings, synth, engine = build(cfg)

    stop_midi = threading.Event()
    try:
        start_midi_listener(bus, port_hint=args.port, stop_evt=stop_midi)
    except NoEventSourceAvailable as e:
        logger.error("%s", e)
        return 1

    # console stands in for the panel buttons: type an input id, Enter
    panel = ControlPanel(settings)
    buttons = MomentaryInputs()
    poller = InputPoller(buttons.read, panel.inputs, panel.trigger,
                         debounce=cfg.debounce_ms / 1000.0)

    engine.start()
    poller.start()
    logger.info("Play! Panel inputs %s; empty line quits.", sorted(panel.inputs))
    try:
        for line in sys.stdin:
            line = line.strip()
            if not line:
                break
            try:
                buttons.press(int(line))
            except ValueError:
                logger.warning("not an input id: %r", line)
    except KeyboardInterrupt:
        pass
    finally:
        logger.info("Closing connection")
        poller.stop()
        stop_midi.set()
        engine.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())

# audio/engine.py
import logging
import threading
from typing import Optional

import numpy as np
import sounddevice as sd

from routing.bus import EventBus
from audio.meter import BlockMeter
from instruments.polyphonic import PolySynth

logger = logging.getLogger(__name__)


class AudioEngine:
    """
    Output backend: pulls mono blocks from the synth inside the sounddevice
    callback. Events posted on the bus are routed at the start of each block,
    so note handling and rendering share the callback thread.
    """
    def __init__(self, synth: PolySynth, bus: EventBus, blocksize=256, channels=1,
                 pre_gain=0.3, limiter_drive=1.15, meter_period=1.0):
        self.synth = synth
        self.bus = bus
        self.sr = synth.sample_rate
        self.blocksize = int(blocksize)
        self.channels = int(channels)

        # processing
        self.pre_gain = float(pre_gain)
        self.limiter_drive = float(limiter_drive)

        # metering
        self.meter = BlockMeter()
        self._meter_period = float(meter_period)
        self._meter_thread: Optional[threading.Thread] = None

        # coordinated shutdown
        self._stop_evt = threading.Event()

        self.stream: Optional[sd.OutputStream] = None

    ###########################################################################
    ##                              LIFECYCLE                                ##
    ###########################################################################
    def start(self):
        self._stop_evt.clear()
        self.stream = sd.OutputStream(
            channels=self.channels,
            samplerate=self.sr,
            blocksize=self.blocksize,
            dtype='float32',
            callback=self._cb,
            latency='low'
        )
        self.stream.start()
        logger.info("output stream started: %d Hz, block %d, %d ch",
                    self.sr, self.blocksize, self.channels)

        # meter thread (non-daemon: we join it)
        self._meter_thread = threading.Thread(target=self._meter_logger, name="AudioMeterThread")
        self._meter_thread.start()

    def stop(self):
        # tell threads to stop
        self._stop_evt.set()

        # abort() is immediate; stop() drains
        if self.stream is not None:
            for op in (self.stream.abort, self.stream.close):
                try:
                    op()
                except sd.PortAudioError as e:
                    logger.warning("stream %s failed: %s", op.__name__, e)
            self.stream = None

        if self._meter_thread:
            self._meter_thread.join(timeout=2.0)
            if self._meter_thread.is_alive():
                logger.warning("meter thread still alive after join()")
            self._meter_thread = None
        logger.info("engine stopped")

    ###########################################################################
    ##                           AUDIO CALL BACK                             ##
    ###########################################################################

    def _cb(self, outdata, frames, time_info, status):
        if status:
            logger.debug("stream status: %s", status)

        # if we are stopping, output silence and return, do not do work
        if self._stop_evt.is_set():
            outdata.fill(0)
            return

        # route events to the synth
        self.synth.route_events(self.bus.drain())

        # render, pre-gain, limit
        dry = self.synth.render(frames).astype(np.float32)
        if self.pre_gain != 1.0:
            dry *= self.pre_gain
        wet = self.limit(dry)

        self.meter.observe(dry, wet, voices=self.synth.num_active_voices())

        # write to device, mono duplicated on every channel
        outdata[:] = wet[:, None]

    def limit(self, x: np.ndarray) -> np.ndarray:
        """tanh soft clip normalised so that full scale maps to full scale."""
        drive = self.limiter_drive
        y = (np.tanh(drive * x) / np.tanh(drive)).astype(np.float32)
        peak = float(np.max(np.abs(y))) if y.size else 0.0
        if peak > 1.0:
            y /= peak
        return y

    ###########################################################################
    ##                           METERING THREAD                             ##
    ###########################################################################
    def _meter_logger(self):
        period = self._meter_period

        while True:
            # wait() returns True if event was set during timeout, exit promptly
            if self._stop_evt.wait(timeout=period):
                break

            w = self.meter.drain()
            lim = " LIM" if w["limited_blocks"] > 0 else ""
            logger.info("peak(in/out): %+6.1f / %+6.1f dBFS | rms: %+6.1f dBFS | "
                        "voices:%2d | dropped:%d | limited:%2d/%d %s%s",
                        w["peak_in_db"], w["peak_out_db"], w["rms_db"],
                        w["max_voices"], self.synth.dropped_notes,
                        w["limited_blocks"], w["blocks"], self._bar(w["peak_out_db"]), lim)

    @staticmethod
    def _bar(db, floor=-60.0, ceil=0.0, width=20):
        db = max(floor, min(ceil, db))
        fill = int((db - floor) / (ceil - floor) * width + 0.5)
        return "[" + ("#" * fill).ljust(width, ".") + "]"

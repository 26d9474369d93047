import matplotlib
matplotlib.use("Agg")

import pytest

from instruments.envelopes.adsr import ADSRParams
from instruments.polyphonic import PolySynth
from instruments.settings import SynthSettings
from instruments.signals.oscillator import WaveType
from instruments.voice import Voice

SR = 44000


@pytest.fixture
def settings():
    return SynthSettings()


@pytest.fixture
def synth(settings):
    return PolySynth(settings, sample_rate=SR)


@pytest.fixture
def make_voice():
    def _make(slot=0, note=69, freq=440.0, wave=WaveType.SINE,
              adsr=ADSRParams(10, 10, 1.0, 10)):
        return Voice(note, freq, wave, adsr, slot, sample_rate=SR)
    return _make

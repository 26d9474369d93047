import logging
from dataclasses import replace
from enum import Enum

from .envelopes.adsr import ADSRParams
from .signals.oscillator import WaveType
from .voice import SharedValue

logger = logging.getLogger(__name__)

ADJUST_STEP_MS = 10
MIN_DURATION_MS = 10
MAX_DURATION_MS = 990


class EnvelopeParam(Enum):
    ATTACK = "attack"
    DECAY = "decay"
    SUSTAIN = "sustain"
    RELEASE = "release"


class SynthSettings:
    """
    Process-wide defaults copied into each new voice: waveform, ADSR and
    the ADSR parameter the control panel currently edits. Passed by
    reference to both the note router and the control panel.
    """

    def __init__(self, waveform: WaveType = WaveType.TRIANGLE,
                 adsr: ADSRParams = ADSRParams(10, 10, 1.0, 10),
                 active_param: EnvelopeParam = EnvelopeParam.ATTACK):
        self._waveform = SharedValue(waveform)
        self._adsr = SharedValue(adsr)
        self._active = SharedValue(active_param)

    @property
    def waveform(self) -> WaveType:
        return self._waveform.get()

    @waveform.setter
    def waveform(self, wave_type: WaveType) -> None:
        self._waveform.set(wave_type)

    @property
    def adsr(self) -> ADSRParams:
        return self._adsr.get()

    @adsr.setter
    def adsr(self, params: ADSRParams) -> None:
        self._adsr.set(params)

    @property
    def active_param(self) -> EnvelopeParam:
        return self._active.get()

    @active_param.setter
    def active_param(self, param: EnvelopeParam) -> None:
        self._active.set(param)

    def adjust_active(self, direction: int) -> ADSRParams:
        """
        Move the active duration by one step up (+1) or down (-1), clamped
        to [10, 990] ms. Sustain is a level, not a duration; left unchanged.
        """
        param = self.active_param
        adsr = self.adsr
        if param is EnvelopeParam.SUSTAIN:
            logger.info("sustain level is not adjustable from the panel")
            return adsr

        current = getattr(adsr, param.value)
        value = current + ADJUST_STEP_MS * (1 if direction > 0 else -1)
        value = max(MIN_DURATION_MS, min(MAX_DURATION_MS, value))
        new = replace(adsr, **{param.value: value})
        # single snapshot swap; a concurrent adjust may be overwritten, never torn
        self.adsr = new
        logger.info("%s = %g ms", param.value, value)
        return new

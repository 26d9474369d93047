import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, Mapping, Optional, Union

from instruments.settings import SynthSettings, EnvelopeParam
from instruments.signals.oscillator import WaveType

logger = logging.getLogger(__name__)


class PanelAction(Enum):
    SELECT_WAVE = auto()
    SELECT_PARAM = auto()
    INCREMENT = auto()
    DECREMENT = auto()


@dataclass(frozen=True)
class Binding:
    action: PanelAction
    value: Union[WaveType, EnvelopeParam, None] = None


# GPIO (BCM) pin numbers of the reference panel
DEFAULT_BINDINGS: Dict[int, Binding] = {
    17: Binding(PanelAction.SELECT_WAVE, WaveType.SINE),
    27: Binding(PanelAction.SELECT_WAVE, WaveType.TRIANGLE),
    22: Binding(PanelAction.SELECT_WAVE, WaveType.SQUARE),
    5:  Binding(PanelAction.SELECT_WAVE, WaveType.SAW),
    6:  Binding(PanelAction.SELECT_PARAM, EnvelopeParam.ATTACK),
    26: Binding(PanelAction.SELECT_PARAM, EnvelopeParam.DECAY),
    23: Binding(PanelAction.SELECT_PARAM, EnvelopeParam.SUSTAIN),
    24: Binding(PanelAction.SELECT_PARAM, EnvelopeParam.RELEASE),
    25: Binding(PanelAction.INCREMENT),
    16: Binding(PanelAction.DECREMENT),
}


class ControlPanel:
    """
    Maps opaque input ids to edits of the shared synth settings.
    Only affects voices created afterwards.
    """

    def __init__(self, settings: SynthSettings,
                 bindings: Optional[Mapping[int, Binding]] = None):
        self.settings = settings
        self.bindings = dict(DEFAULT_BINDINGS if bindings is None else bindings)

    @property
    def inputs(self):
        return list(self.bindings)

    def trigger(self, input_id: int) -> None:
        b = self.bindings.get(input_id)
        if b is None:
            logger.warning("no binding for input %s", input_id)
            return

        if b.action is PanelAction.SELECT_WAVE:
            self.settings.waveform = b.value
        elif b.action is PanelAction.SELECT_PARAM:
            self.settings.active_param = b.value
        elif b.action is PanelAction.INCREMENT:
            self.settings.adjust_active(+1)
        elif b.action is PanelAction.DECREMENT:
            self.settings.adjust_active(-1)
        logger.info("triggered %s: %s %s", input_id, b.action.name,
                    b.value.name if b.value is not None else "")

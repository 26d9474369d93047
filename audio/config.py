from dataclasses import dataclass, fields


@dataclass
class EngineConfig:
    # audio
    sample_rate: int = 44000
    blocksize: int = 256
    channels: int = 1

    # voices
    max_polyphony: int = 16
    envelope_tick_ms: float = 1.0
    glide_tick_samples: int = 1
    glide_step_hz: float = 1.0
    release_from_current: bool = False
    master: float = 0.6

    # output processing
    pre_gain: float = 0.3
    limiter_drive: float = 1.15
    meter_period: float = 1.0

    # control panel
    debounce_ms: float = 50.0

    def __post_init__(self):
        if self.sample_rate < 1000:
            raise ValueError(f"sample_rate too low: {self.sample_rate}")
        if self.channels not in (1, 2):
            raise ValueError("Only mono or stereo devices supported.")
        if self.max_polyphony < 1:
            raise ValueError("max_polyphony must be >= 1")

    def updated(self, **overrides) -> "EngineConfig":
        """Copy with the non-None overrides applied."""
        names = {f.name for f in fields(self)}
        unknown = set(overrides) - names
        if unknown:
            raise TypeError(f"unknown config fields: {sorted(unknown)}")
        values = {n: getattr(self, n) for n in names}
        values.update({k: v for k, v in overrides.items() if v is not None})
        return EngineConfig(**values)

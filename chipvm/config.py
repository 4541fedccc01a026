"""Emulator configuration."""

import argparse
import dataclasses

from chipvm.rendering import COLOR_SCHEMES


@dataclasses.dataclass(frozen=True)
class EmulatorConfig:
    """Host-side settings for running a CHIP-8 program.

    Attributes:
        instructions_per_second: CHIP-8 CPU frequency in Hz
        timer_hz: Delay/sound timer rate, also the frame rate of the host loop
        strict_opcodes: Raise on unsupported opcodes instead of logging them
        seed: Seed for the PRNG used by CXNN
        scale: Upscaling factor for rendered frames
        color_scheme: Renderer palette name
        log_level: Console logger threshold
    """
    instructions_per_second: int = 600
    timer_hz: int = 60
    strict_opcodes: bool = False
    seed: int = 0
    scale: int = 8
    color_scheme: str = "classic"
    log_level: str = "INFO"

    def __post_init__(self):
        if self.timer_hz <= 0:
            raise ValueError(f"timer_hz must be positive, got {self.timer_hz}")
        if self.instructions_per_second < self.timer_hz:
            raise ValueError(
                f"instructions_per_second ({self.instructions_per_second}) "
                f"must be at least timer_hz ({self.timer_hz})"
            )
        if self.scale < 1:
            raise ValueError(f"scale must be at least 1, got {self.scale}")
        if self.color_scheme not in COLOR_SCHEMES:
            raise ValueError(
                f"Unknown color scheme '{self.color_scheme}'. "
                f"Available: {list(COLOR_SCHEMES.keys())}"
            )

    @property
    def instructions_per_frame(self) -> int:
        """Number of instructions executed between two timer ticks."""
        return self.instructions_per_second // self.timer_hz

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "EmulatorConfig":
        """Build a config from parsed CLI arguments, ignoring unrelated ones."""
        names = {field.name for field in dataclasses.fields(cls)}
        return cls(**{k: v for k, v in vars(args).items() if k in names and v is not None})

"""Emulator configuration: window, clock rates, sound and key bindings."""

import json
from dataclasses import asdict, dataclass, field, fields, replace
from typing import Dict, Optional, Tuple

from .constants import NUM_KEYS, TIMER_HZ

# host key name (pyglet.window.key attribute) -> CHIP-8 keypad index
#   1 2 3 C        1 2 3 4
#   4 5 6 D   <-   Q W E R
#   7 8 9 E        A S D F
#   A 0 B F        Z X C V
DEFAULT_KEYMAP = {
    "_1": 0x1, "_2": 0x2, "_3": 0x3, "_4": 0xC,
    "Q": 0x4, "W": 0x5, "E": 0x6, "R": 0xD,
    "A": 0x7, "S": 0x8, "D": 0x9, "F": 0xE,
    "Z": 0xA, "X": 0x0, "C": 0xB, "V": 0xF,
}


@dataclass
class EmulatorConfig:
    scale: int = 10
    cpu_hz: int = 600
    timer_hz: int = TIMER_HZ
    beep_frequency: int = 440
    beep_duration: float = 0.2
    strict: bool = False
    truncate: bool = False
    seed: Optional[int] = None
    show_stats: bool = True
    foreground: Tuple[int, int, int] = (255, 255, 255)
    background: Tuple[int, int, int] = (0, 0, 0)
    keymap: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_KEYMAP))

    def __post_init__(self):
        if self.scale < 1:
            raise ValueError(f"scale must be at least 1, got {self.scale}")
        if self.cpu_hz <= 0 or self.timer_hz <= 0:
            raise ValueError("clock rates must be positive")
        self.foreground = tuple(self.foreground)
        self.background = tuple(self.background)
        for name, key in self.keymap.items():
            if not 0 <= key < NUM_KEYS:
                raise ValueError(f"key {name!r} mapped to invalid keypad index {key}")

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "EmulatorConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"unknown config keys: {', '.join(sorted(unknown))}")
        return cls(**data)

    @classmethod
    def load(cls, path) -> "EmulatorConfig":
        """Load configuration from a JSON file."""
        with open(path, "r") as f:
            return cls.from_dict(json.load(f))

    def save(self, path) -> None:
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    def with_overrides(self, **overrides) -> "EmulatorConfig":
        """Copy with every override that is not None applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

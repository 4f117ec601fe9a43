"""CHIP-8 interpreter core with a pyglet front end."""

from .constants import FONTSET, HEIGHT, PROGRAM_START, WIDTH
from .errors import Chip8Fault, LoadError, StackOverflow, StackUnderflow, UnknownOpcode
from .loader import load_program, load_rom
from .machine import RUNNING, AwaitingKey, Machine, decode, mnemonic

__version__ = "0.1.0"

__all__ = [
    "FONTSET", "HEIGHT", "PROGRAM_START", "WIDTH",
    "Chip8Fault", "LoadError", "StackOverflow", "StackUnderflow", "UnknownOpcode",
    "load_program", "load_rom",
    "RUNNING", "AwaitingKey", "Machine", "decode", "mnemonic",
]

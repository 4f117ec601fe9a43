# CHIP8 Virtual Machine:
# Input - key states are written by the host before each cycle.
# Output - 64x32 framebuffer (pixels are either on or off) & the sound timer.
# CPU - Cowgod's CHIP8 Technical reference http://devernay.free.fr/hacks/chip8/C8TECH10.HTM#0.0
# Memory - 4096 bytes which hold the font and the loaded program.
#----------------------------------------------------------------------------------------------
# The host calls step() at the instruction rate and tick_timers() at 60 Hz.
# Nothing in here blocks or talks to a window, a speaker or a file.

import logging
import random
from dataclasses import dataclass
from typing import Callable, NamedTuple, Optional

import numpy as np

from .constants import (
    FLAG, FONT_END, FONT_START, FONTSET, GLYPH_SIZE, HEIGHT, MEMORY_SIZE,
    NUM_KEYS, NUM_REGISTERS, PROGRAM_START, STACK_SIZE, WIDTH,
)
from .errors import Chip8Fault, StackOverflow, StackUnderflow, UnknownOpcode

logger = logging.getLogger(__name__)

ADDRESS_MASK = MEMORY_SIZE - 1


class Opcode(NamedTuple):
    """A fetched instruction word split into its operand fields."""
    word: int
    d1: int
    x: int      # d2
    y: int      # d3
    n: int      # d4
    nn: int
    nnn: int


def decode(word: int) -> Opcode:
    return Opcode(
        word=word,
        d1=(word >> 12) & 0xF,
        x=(word >> 8) & 0xF,
        y=(word >> 4) & 0xF,
        n=word & 0xF,
        nn=word & 0xFF,
        nnn=word & 0xFFF,
    )


# dispatch table: (mask, pattern, mnemonic). First match wins.
OPCODES = [
    (0xFFFF, 0x0000, "NOP"),
    (0xFFFF, 0x00E0, "CLS"),
    (0xFFFF, 0x00EE, "RET"),

    (0xF000, 0x1000, "JP"),
    (0xF000, 0x2000, "CALL"),
    (0xF000, 0x3000, "SE_Vx_kk"),
    (0xF000, 0x4000, "SNE_Vx_kk"),
    (0xF00F, 0x5000, "SE_Vx_Vy"),
    (0xF000, 0x6000, "LD_Vx_kk"),
    (0xF000, 0x7000, "ADD_Vx_kk"),

    (0xF00F, 0x8000, "LD_Vx_Vy"),
    (0xF00F, 0x8001, "OR"),
    (0xF00F, 0x8002, "AND"),
    (0xF00F, 0x8003, "XOR"),
    (0xF00F, 0x8004, "ADD"),
    (0xF00F, 0x8005, "SUB"),
    (0xF00F, 0x8006, "SHR"),
    (0xF00F, 0x8007, "SUBN"),
    (0xF00F, 0x800E, "SHL"),

    (0xF00F, 0x9000, "SNE_Vx_Vy"),
    (0xF000, 0xA000, "LD_I"),
    (0xF000, 0xB000, "JP_V0"),
    (0xF000, 0xC000, "RND"),
    (0xF000, 0xD000, "DRW"),

    (0xF0FF, 0xE09E, "SKP"),
    (0xF0FF, 0xE0A1, "SKNP"),

    (0xF0FF, 0xF007, "LD_Vx_DT"),
    (0xF0FF, 0xF00A, "WAITKEY"),
    (0xF0FF, 0xF015, "LD_DT_Vx"),
    (0xF0FF, 0xF018, "LD_ST_Vx"),
    (0xF0FF, 0xF01E, "ADD_I_Vx"),
    (0xF0FF, 0xF029, "FONT"),
    (0xF0FF, 0xF033, "BCD"),
    (0xF0FF, 0xF055, "STORE"),
    (0xF0FF, 0xF065, "LOAD"),
]


def mnemonic(word: int) -> Optional[str]:
    """Name of the instruction ``word`` decodes to, or None if it is unknown."""
    for mask, pattern, name in OPCODES:
        if word & mask == pattern:
            return name
    return None


# ---- Machine modes ----
@dataclass(frozen=True)
class Running:
    pass


@dataclass(frozen=True)
class AwaitingKey:
    register: int


RUNNING = Running()


class Machine:

    def __init__(self, seed: Optional[int] = None,
                 on_fault: Optional[Callable[[Chip8Fault], None]] = None):
        # ---- CPU state ----
        self.memory = bytearray(MEMORY_SIZE)
        self.V = [0] * NUM_REGISTERS
        self.I = 0
        self.pc = PROGRAM_START

        self.stack = np.zeros(STACK_SIZE, dtype=np.uint16)
        self.sp = 0

        # ---- peripherals ----
        self.framebuffer = np.zeros((HEIGHT, WIDTH), dtype=bool)
        self.keys = np.zeros(NUM_KEYS, dtype=bool)
        self.delay_timer = 0
        self.sound_timer = 0

        self.mode = RUNNING
        # keys that were already down when Fx0A started waiting
        self._held_keys = np.zeros(NUM_KEYS, dtype=bool)

        self.draw_flag = True
        self.cycles = 0

        self.seed = seed
        self.rng = random.Random(seed)
        self.on_fault = on_fault

        self.handlers = [
            (mask, pattern, getattr(self, "op_" + name))
            for mask, pattern, name in OPCODES
        ]

        self.reset()

    def reset(self):
        """Back to the power-on state, reusing the existing storage."""
        self.memory[:] = bytes(MEMORY_SIZE)
        self.memory[FONT_START:FONT_END] = FONTSET
        self.V[:] = [0] * NUM_REGISTERS
        self.I = 0
        self.pc = PROGRAM_START
        self.stack.fill(0)
        self.sp = 0
        self.framebuffer.fill(False)
        self.keys.fill(False)
        self._held_keys.fill(False)
        self.delay_timer = 0
        self.sound_timer = 0
        self.mode = RUNNING
        self.draw_flag = True
        self.cycles = 0
        self.rng.seed(self.seed)
        logger.debug("Machine reset")

    # ---- Keypad ----
    def press_key(self, key: int):
        self.keys[self._check_key(key)] = True

    def release_key(self, key: int):
        self.keys[self._check_key(key)] = False

    def set_keys(self, states):
        states = np.asarray(states, dtype=bool)
        if states.shape != (NUM_KEYS,):
            raise ValueError(f"expected {NUM_KEYS} key states, got shape {states.shape}")
        self.keys[:] = states

    @staticmethod
    def _check_key(key):
        if not 0 <= key < NUM_KEYS:
            raise ValueError(f"no such key: {key!r}")
        return key

    # ---- Sound ----
    @property
    def sound_on(self) -> bool:
        return self.sound_timer > 0

    @property
    def awaiting_key(self) -> bool:
        return isinstance(self.mode, AwaitingKey)

    # ---- Timers (60 Hz) ----
    def tick_timers(self):
        if self.delay_timer > 0:
            self.delay_timer -= 1
        if self.sound_timer > 0:
            self.sound_timer -= 1
            if self.sound_timer == 0:
                logger.debug("Sound timer expired")

    # ---- Cycle ----
    def peek_opcode(self) -> int:
        return (self.memory[self.pc & ADDRESS_MASK] << 8) | self.memory[(self.pc + 1) & ADDRESS_MASK]

    def fetch(self) -> int:
        opcode = self.peek_opcode()
        self.pc = (self.pc + 2) & ADDRESS_MASK
        return opcode

    def step(self):
        if self.awaiting_key:
            self._poll_keys()
            return

        address = self.pc
        op = decode(self.fetch())
        self.cycles += 1

        for mask, pattern, handler in self.handlers:
            if op.word & mask == pattern:
                if logger.isEnabledFor(logging.DEBUG):
                    logger.debug("%03X: %04X %s", address, op.word, handler.__name__[3:])
                handler(op)
                return

        self._fault(UnknownOpcode, op)

    def _fault(self, kind, op):
        # the faulting instruction is a no-op, so pc still points just past it
        fault = kind(op.word, (self.pc - 2) & ADDRESS_MASK)
        logger.warning("%s", fault)
        if self.on_fault is not None:
            self.on_fault(fault)

    def _skip(self):
        self.pc = (self.pc + 2) & ADDRESS_MASK

    def _poll_keys(self):
        # a key only counts once it has gone down after the wait began
        self._held_keys &= self.keys
        fresh = np.flatnonzero(self.keys & ~self._held_keys)
        if fresh.size == 0:
            return
        key = int(fresh[0])
        register = self.mode.register
        self.V[register] = key
        self.mode = RUNNING
        logger.debug("Key %X pressed, stored in V%X", key, register)

    # ---- Opcode handlers ----
    def op_NOP(self, op):
        pass

    def op_CLS(self, op):
        self.framebuffer.fill(False)
        self.draw_flag = True

    def op_RET(self, op):
        if self.sp == 0:
            self._fault(StackUnderflow, op)
            return
        self.sp -= 1
        self.pc = int(self.stack[self.sp])

    def op_JP(self, op):
        self.pc = op.nnn

    def op_CALL(self, op):
        if self.sp >= STACK_SIZE:
            self._fault(StackOverflow, op)
            return
        self.stack[self.sp] = self.pc
        self.sp += 1
        self.pc = op.nnn

    def op_SE_Vx_kk(self, op):
        if self.V[op.x] == op.nn:
            self._skip()

    def op_SNE_Vx_kk(self, op):
        if self.V[op.x] != op.nn:
            self._skip()

    def op_SE_Vx_Vy(self, op):
        if self.V[op.x] == self.V[op.y]:
            self._skip()

    def op_LD_Vx_kk(self, op):
        self.V[op.x] = op.nn

    def op_ADD_Vx_kk(self, op):
        self.V[op.x] = (self.V[op.x] + op.nn) & 0xFF

    def op_LD_Vx_Vy(self, op):
        self.V[op.x] = self.V[op.y]

    def op_OR(self, op):
        self.V[op.x] |= self.V[op.y]

    def op_AND(self, op):
        self.V[op.x] &= self.V[op.y]

    def op_XOR(self, op):
        self.V[op.x] ^= self.V[op.y]

    # VF is written after the result so the flag survives when x is F
    def op_ADD(self, op):
        total = self.V[op.x] + self.V[op.y]
        self.V[op.x] = total & 0xFF
        self.V[FLAG] = 1 if total > 0xFF else 0

    def op_SUB(self, op):
        vx, vy = self.V[op.x], self.V[op.y]
        self.V[op.x] = (vx - vy) & 0xFF
        self.V[FLAG] = 1 if vx >= vy else 0

    def op_SHR(self, op):
        vx = self.V[op.x]
        self.V[op.x] = vx >> 1
        self.V[FLAG] = vx & 1

    def op_SUBN(self, op):
        vx, vy = self.V[op.x], self.V[op.y]
        self.V[op.x] = (vy - vx) & 0xFF
        self.V[FLAG] = 1 if vy >= vx else 0

    def op_SHL(self, op):
        vx = self.V[op.x]
        self.V[op.x] = (vx << 1) & 0xFF
        self.V[FLAG] = (vx >> 7) & 1

    def op_SNE_Vx_Vy(self, op):
        if self.V[op.x] != self.V[op.y]:
            self._skip()

    def op_LD_I(self, op):
        self.I = op.nnn

    def op_JP_V0(self, op):
        self.pc = (op.nnn + self.V[0]) & ADDRESS_MASK

    def op_RND(self, op):
        self.V[op.x] = self.rng.getrandbits(8) & op.nn

    def op_DRW(self, op):
        # start position wraps, the sprite itself is clipped at the edges
        px = self.V[op.x] % WIDTH
        py = self.V[op.y] % HEIGHT
        rows = np.array(
            [self.memory[(self.I + row) & ADDRESS_MASK] for row in range(op.n)],
            dtype=np.uint8,
        )
        sprite = np.unpackbits(rows).reshape(op.n, 8).astype(bool)
        sprite = sprite[:HEIGHT - py, :WIDTH - px]
        h, w = sprite.shape
        region = self.framebuffer[py:py + h, px:px + w]
        collision = bool(np.any(region & sprite))
        region ^= sprite
        self.V[FLAG] = 1 if collision else 0
        self.draw_flag = True

    def op_SKP(self, op):
        if self.keys[self.V[op.x] & 0xF]:
            self._skip()

    def op_SKNP(self, op):
        if not self.keys[self.V[op.x] & 0xF]:
            self._skip()

    def op_LD_Vx_DT(self, op):
        self.V[op.x] = self.delay_timer

    def op_WAITKEY(self, op):
        self.mode = AwaitingKey(op.x)
        self._held_keys[:] = self.keys
        logger.debug("Waiting for a key press into V%X", op.x)

    def op_LD_DT_Vx(self, op):
        self.delay_timer = self.V[op.x]

    def op_LD_ST_Vx(self, op):
        self.sound_timer = self.V[op.x]

    def op_ADD_I_Vx(self, op):
        self.I = (self.I + self.V[op.x]) & 0xFFFF

    def op_FONT(self, op):
        self.I = FONT_START + (self.V[op.x] & 0xF) * GLYPH_SIZE

    def op_BCD(self, op):
        value = self.V[op.x]
        for offset, digit in enumerate((value // 100, (value // 10) % 10, value % 10)):
            self.memory[(self.I + offset) & ADDRESS_MASK] = digit

    def op_STORE(self, op):
        for i in range(op.x + 1):
            self.memory[(self.I + i) & ADDRESS_MASK] = self.V[i]

    def op_LOAD(self, op):
        for i in range(op.x + 1):
            self.V[i] = self.memory[(self.I + i) & ADDRESS_MASK]

# CHIP-8 memory map, display geometry and the built-in font.
# Reference: Cowgod's CHIP-8 Technical Reference
# http://devernay.free.fr/hacks/chip8/C8TECH10.HTM

MEMORY_SIZE = 4096      # 0x000 - 0xFFF
PROGRAM_START = 0x200   # everything below is reserved for the interpreter
MAX_PROGRAM_SIZE = MEMORY_SIZE - PROGRAM_START

NUM_REGISTERS = 16      # V0 - VF
FLAG = 0xF              # VF doubles as carry / borrow / collision flag
STACK_SIZE = 16
NUM_KEYS = 16

WIDTH, HEIGHT = 64, 32

TIMER_HZ = 60

FONT_START = 0x000
GLYPH_SIZE = 5

# set fonts (binary pixel patterns)
FONTSET = bytes([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
])  # notice 80 bytes

FONT_END = FONT_START + len(FONTSET)

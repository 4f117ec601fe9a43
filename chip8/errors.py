# Fault taxonomy. The machine reports these instead of raising them,
# a host running in strict mode may choose to raise them.


class Chip8Fault(Exception):
    """A recoverable problem found while executing a program."""

    def __init__(self, opcode, address, message=None):
        self.opcode = opcode
        self.address = address
        super().__init__(message or f"{self.describe()} (opcode {opcode:04X} at 0x{address:03X})")

    def describe(self):
        return "fault"


class StackUnderflow(Chip8Fault):
    def describe(self):
        return "stack underflow on RET"


class StackOverflow(Chip8Fault):
    def describe(self):
        return "stack overflow on CALL"


class UnknownOpcode(Chip8Fault):
    def describe(self):
        return "unknown opcode"


class LoadError(Exception):
    """The program image could not be placed into memory."""

import pytest

from chip8.loader import load_program
from chip8.machine import Machine


@pytest.fixture
def machine():
    return Machine(seed=1234)


@pytest.fixture
def faults():
    return []


@pytest.fixture
def reporting_machine(faults):
    return Machine(seed=1234, on_fault=faults.append)


def program(*words):
    """Big-endian bytes for a list of 16-bit opcodes."""
    return b"".join(w.to_bytes(2, "big") for w in words)


def run(machine, *words, steps=None):
    load_program(machine, program(*words))
    for _ in range(len(words) if steps is None else steps):
        machine.step()
    return machine

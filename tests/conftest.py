import random

import pytest

from chip8.cpu import CPU
from chip8.interpreter import Interpreter


def assemble(*words):
    """Pack 16-bit instruction words into big-endian program bytes."""
    program = bytearray()
    for word in words:
        program.append((word >> 8) & 0xFF)
        program.append(word & 0xFF)
    return bytes(program)


@pytest.fixture
def cpu():
    return CPU(rng=random.Random(1234))


@pytest.fixture
def interpreter():
    return Interpreter(cpu_hz=600, rng=random.Random(1234))


@pytest.fixture
def load(cpu):
    """Load instruction words at 0x200 of the cpu fixture."""
    def _load(*words):
        cpu.load_program(assemble(*words))
        return cpu
    return _load

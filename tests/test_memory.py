import pytest

from chip8.exception import (
    LoadException, MemoryOutOfBoundsException, StackOverflowException,
    StackUnderflowException
)
from chip8.memory import (
    FONT_START_ADDRESS, FONTSET, MAX_MEMORY, STACK_DEPTH, CallStack, Memory
)


def test_size():
    memory = Memory()
    assert len(memory) == MAX_MEMORY == 4096


def test_read_write_byte():
    memory = Memory()
    memory.write_byte(0xFFF, 0x1AB)
    assert memory.read_byte(0xFFF) == 0xAB


@pytest.mark.parametrize("address", [-1, 0x1000, 0x2000])
def test_out_of_bounds_byte(address):
    memory = Memory()
    with pytest.raises(MemoryOutOfBoundsException) as excinfo:
        memory.read_byte(address)
    assert excinfo.value.address == address
    with pytest.raises(MemoryOutOfBoundsException):
        memory.write_byte(address, 0)


def test_read_word_is_big_endian():
    memory = Memory()
    memory.write_block(0x200, [0x12, 0x34])
    assert memory.read_word(0x200) == 0x1234


def test_read_word_past_end():
    memory = Memory()
    with pytest.raises(MemoryOutOfBoundsException) as excinfo:
        memory.read_word(0xFFF)
    assert excinfo.value.address == 0x1000


def test_block_past_end_is_not_written():
    memory = Memory()
    with pytest.raises(MemoryOutOfBoundsException):
        memory.write_block(0xFFE, [1, 2, 3])
    assert memory.read_block(0xFFE, 2) == b'\x00\x00'


def test_font():
    memory = Memory()
    memory.load_font()
    assert len(FONTSET) == 80
    assert memory.read_block(FONT_START_ADDRESS, 80) == FONTSET
    # digit 5
    assert memory.read_block(FONT_START_ADDRESS + 25, 5) == bytes(
        [0xF0, 0x80, 0xF0, 0x10, 0xF0])


def test_load_program():
    memory = Memory()
    memory.load_program(b'\x00\xE0\x12\x00')
    assert memory.read_block(0x200, 4) == b'\x00\xE0\x12\x00'


def test_load_largest_program():
    memory = Memory()
    memory.load_program(b'\xAA' * (MAX_MEMORY - 0x200))
    assert memory.read_byte(0xFFF) == 0xAA


def test_load_program_too_large():
    memory = Memory()
    with pytest.raises(LoadException):
        memory.load_program(b'\xAA' * (MAX_MEMORY - 0x200 + 1))
    assert memory.read_byte(0x200) == 0


def test_dump():
    memory = Memory()
    memory.write_block(0x200, [0x00, 0xE0])
    assert memory.dump(0x200, 0x204, width=2) == "200: 00 E0\n202: 00 00"


def test_stack_push_pop():
    stack = CallStack()
    stack.push(0x202)
    stack.push(0x304)
    assert len(stack) == 2
    assert stack.pop() == 0x304
    assert stack.pop() == 0x202


def test_stack_overflow():
    stack = CallStack()
    for index in range(STACK_DEPTH):
        stack.push(0x200 + index * 2)
    with pytest.raises(StackOverflowException) as excinfo:
        stack.push(0x300, pc=0x2FE)
    assert excinfo.value.pc == 0x2FE
    assert excinfo.value.depth == STACK_DEPTH
    assert len(stack) == STACK_DEPTH


def test_stack_underflow():
    stack = CallStack()
    with pytest.raises(StackUnderflowException) as excinfo:
        stack.pop(pc=0x200)
    assert excinfo.value.pc == 0x200

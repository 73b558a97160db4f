from .exception import (
    LoadException, MemoryOutOfBoundsException, StackOverflowException,
    StackUnderflowException
)

# The total amount of memory to allocate for the emulator
MAX_MEMORY = 4096

# Where programs are loaded and the program counter originally points
PROGRAM_COUNTER_START = 0x200

# Where the font sprites live in the reserved interpreter area
FONT_START_ADDRESS = 0x050

# Every font sprite is 5 bytes tall
FONT_SPRITE_SIZE = 5

# The number of return addresses the call stack can hold
STACK_DEPTH = 16

# The hexadecimal digits 0 - F, one 4x5 sprite per digit
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
])


class Memory(object):
    """
    The flat 4K byte store of the Chip 8. Addresses 0x000 - 0x1FF belong to
    the interpreter (the font lives there), programs start at 0x200. Every
    access is checked against the size of the store; nothing wraps.
    """
    def __init__(self, size=MAX_MEMORY):
        self.size = size
        self.data = bytearray(size)

    def __len__(self):
        return self.size

    def check_address(self, address, length=1):
        """
        Raise if any byte in [address, address + length) lies outside of
        memory.

        :param address: the first address accessed
        :param length: the number of bytes accessed
        """
        if address < 0 or address >= self.size:
            raise MemoryOutOfBoundsException(address)
        if address + length > self.size:
            raise MemoryOutOfBoundsException(address + length - 1)

    def read_byte(self, address):
        self.check_address(address)
        return self.data[address]

    def write_byte(self, address, value):
        self.check_address(address)
        self.data[address] = value & 0xFF

    def read_word(self, address):
        """
        Read the big-endian 16-bit word stored at address and address + 1.

        :param address: the address of the high byte
        :return: the word
        """
        self.check_address(address, 2)
        return (self.data[address] << 8) | self.data[address + 1]

    def read_block(self, address, length):
        self.check_address(address, length)
        return bytes(self.data[address:address + length])

    def write_block(self, address, values):
        values = bytes(values)
        self.check_address(address, len(values))
        self.data[address:address + len(values)] = values

    def clear(self):
        self.data[:] = bytes(self.size)

    def load_font(self, address=FONT_START_ADDRESS):
        self.write_block(address, FONTSET)

    def load_program(self, program, offset=PROGRAM_COUNTER_START):
        """
        Copy the program bytes into memory starting at offset. The size is
        checked before anything is written.

        :param program: the raw program bytes
        :param offset: the location in memory at which to load the program
        """
        program = bytes(program)
        available = self.size - offset
        if len(program) > available:
            raise LoadException(
                "Program is {} bytes, only {} bytes available from 0x{:03X}".format(
                    len(program), available, offset))
        self.write_block(offset, program)

    def dump(self, start=0, end=None, width=16):
        """
        Returns a hexdump of memory, one line per `width` bytes.

        :param start: the first address to dump
        :param end: one past the last address to dump (default: all)
        :param width: the number of bytes per line
        :return: the dump as a string
        """
        if end is None:
            end = self.size
        self.check_address(start, end - start)
        lines = []
        for base in range(start, end, width):
            row = self.data[base:min(base + width, end)]
            lines.append('{:03X}: {}'.format(
                base, ' '.join('{:02X}'.format(value) for value in row)))
        return '\n'.join(lines)


class CallStack(object):
    """
    The return address stack used by CALL and RET. It is separate from the
    addressable memory and holds at most STACK_DEPTH entries.
    """
    def __init__(self, depth=STACK_DEPTH):
        self.max_depth = depth
        self.addresses = []

    def __len__(self):
        return len(self.addresses)

    def push(self, address, pc=None):
        """
        Push a return address.

        :param address: the return address
        :param pc: the program counter reported if the stack is full
        """
        if len(self.addresses) >= self.max_depth:
            raise StackOverflowException(
                address if pc is None else pc, len(self.addresses))
        self.addresses.append(address)

    def pop(self, pc=0):
        """
        Pop the most recent return address.

        :param pc: the program counter reported if the stack is empty
        :return: the return address
        """
        if not self.addresses:
            raise StackUnderflowException(pc, 0)
        return self.addresses.pop()

    def clear(self):
        del self.addresses[:]

class Chip8Exception(Exception):
    """
    Base class for every fault the interpreter reports to its host.
    """


class UnknownOpCodeException(Chip8Exception):
    """
    A class to raise unknown op code exceptions.
    """
    def __init__(self, op_code, address=None):
        self.op_code = op_code
        self.address = address
        message = "Unknown op-code: 0x{:04X}".format(op_code)
        if address is not None:
            message += " at 0x{:04X}".format(address)
        Chip8Exception.__init__(self, message)


class StackOverflowException(Chip8Exception):
    """
    Raised when a subroutine call is made with a full call stack.
    """
    def __init__(self, pc, depth):
        self.pc = pc
        self.depth = depth
        Chip8Exception.__init__(
            self, "Stack overflow at 0x{:04X} (depth {})".format(pc, depth))


class StackUnderflowException(Chip8Exception):
    """
    Raised when a return is made with an empty call stack.
    """
    def __init__(self, pc, depth=0):
        self.pc = pc
        self.depth = depth
        Chip8Exception.__init__(
            self, "Stack underflow at 0x{:04X} (depth {})".format(pc, depth))


class MemoryOutOfBoundsException(Chip8Exception):
    """
    Raised when an address computed by the program falls outside memory.
    """
    def __init__(self, address):
        self.address = address
        Chip8Exception.__init__(
            self, "Memory access out of bounds: 0x{:X}".format(address))


class LoadException(Chip8Exception):
    """
    Raised when a program cannot be loaded into memory.
    """

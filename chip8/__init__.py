from .cpu import CPU, DEFAULT_QUIRKS, Quirks
from .decoder import Instruction, Op, decode
from .exception import (
    Chip8Exception, LoadException, MemoryOutOfBoundsException,
    StackOverflowException, StackUnderflowException, UnknownOpCodeException
)
from .framebuffer import FrameBuffer
from .interpreter import Interpreter
from .keypad import Keypad
from .memory import CallStack, Memory
from .timers import Timers

__version__ = '1.0.0'

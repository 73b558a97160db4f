"""
The fetch-decode-execute loop.

The Interpreter runs the CPU at a configurable instruction rate and ticks the
timers at their own fixed 60Hz rate. The host calls advance() with the wall
clock time that has passed; both schedules keep their fractional remainders
between calls, so the number of timer ticks never depends on how many
instructions ran, or on the host's frame rate.
"""
import logging

from .cpu import CPU, DEFAULT_QUIRKS
from .exception import LoadException
from .memory import MAX_MEMORY, PROGRAM_COUNTER_START
from .timers import TIMER_HZ

logger = logging.getLogger(__name__)

# The default number of instructions executed per second
DEFAULT_CPU_HZ = 700

# The largest program that fits between the load address and the end of memory
MAX_PROGRAM_SIZE = MAX_MEMORY - PROGRAM_COUNTER_START


class Interpreter(object):
    """
    Owns one CPU and the program it runs, and schedules instruction steps and
    timer ticks. Pause, single step, reset and stop requests only ever take
    effect between two instructions.
    """
    def __init__(self, cpu_hz=DEFAULT_CPU_HZ, quirks=DEFAULT_QUIRKS, rng=None,
                 trace=False, cpu=None):
        if cpu_hz <= 0:
            raise ValueError("cpu_hz must be positive, got {!r}".format(cpu_hz))
        self.cpu = cpu if cpu is not None else CPU(quirks=quirks, rng=rng, trace=trace)
        self.cpu_hz = cpu_hz
        self.program = b''
        self.paused = False
        self.running = True
        self.cycles = 0
        self._cycle_budget = 0.0
        self._timer_budget = 0.0

    @property
    def screen(self):
        return self.cpu.screen

    @property
    def keypad(self):
        return self.cpu.keypad

    @property
    def sound_active(self):
        return self.cpu.timers.sound_active

    def load(self, program):
        """
        Reset the machine and load a program at 0x200. The size is checked
        before any state changes.

        :param program: the raw program bytes
        """
        program = bytes(program)
        if len(program) > MAX_PROGRAM_SIZE:
            raise LoadException(
                "Program is {} bytes, the maximum is {} bytes".format(
                    len(program), MAX_PROGRAM_SIZE))
        self.program = program
        self.reset()
        logger.info("Loaded %d byte program", len(program))

    def load_file(self, filename):
        """
        Load the ROM indicated by the filename into memory.

        :param filename: the name of the file to load
        """
        try:
            with open(filename, 'rb') as rom_file:
                program = rom_file.read()
        except OSError as error:
            raise LoadException("Cannot read ROM {}: {}".format(filename, error))
        logger.info("Read ROM %s", filename)
        self.load(program)

    def reset(self):
        """
        Reinitialize every part of the machine and reload the current
        program. A stopped interpreter is running again after a reset.
        """
        self.cpu.reset()
        self.cpu.load_program(self.program)
        self.cycles = 0
        self._cycle_budget = 0.0
        self._timer_budget = 0.0
        self.running = True
        logger.info("Reset")

    def step(self):
        """
        Execute exactly one instruction.

        :return: the Instruction executed
        """
        instruction = self.cpu.execute_instruction()
        self.cycles += 1
        return instruction

    def single_step(self):
        """
        Execute one instruction whether or not the interpreter is paused.
        """
        instruction = self.step()
        logger.debug("Step %d: %s\n%s", self.cycles, instruction, self.cpu)
        return instruction

    def tick_timers(self):
        self.cpu.decrement_timers()

    def pause(self):
        if not self.paused:
            self.paused = True
            logger.info("Paused at 0x%04X", self.cpu.pc)

    def resume(self):
        if self.paused:
            self.paused = False
            logger.info("Resumed")

    def toggle_pause(self):
        if self.paused:
            self.resume()
        else:
            self.pause()

    def stop(self):
        self.running = False

    def advance(self, elapsed):
        """
        Run the machine for `elapsed` seconds of wall clock time: about
        cpu_hz * elapsed instructions and 60 * elapsed timer ticks. The
        instructions and ticks are interleaved in time order. Nothing
        happens while paused or stopped.

        :param elapsed: the number of seconds that have passed
        :return: the number of instructions executed
        """
        if self.paused or not self.running or elapsed <= 0:
            return 0

        self._cycle_budget += elapsed * self.cpu_hz
        self._timer_budget += elapsed * TIMER_HZ
        steps = int(self._cycle_budget)
        ticks = int(self._timer_budget)
        self._cycle_budget -= steps
        self._timer_budget -= ticks

        executed = 0
        for tick in range(ticks + 1):
            # Run the instructions that fall before the next timer tick
            if tick < ticks:
                target = steps * (tick + 1) // ticks
            else:
                target = steps
            while executed < target:
                if not self.running:
                    return executed
                self.step()
                executed += 1
            if tick < ticks:
                self.tick_timers()
        return executed

    def run(self, max_cycles):
        """
        Execute up to max_cycles instructions back to back, ticking the timers
        once for every cpu_hz / 60 instructions. Used for headless runs.

        :param max_cycles: the number of instructions to execute
        :return: the number of instructions executed
        """
        executed = 0
        while executed < max_cycles and self.running and not self.paused:
            self.step()
            executed += 1
            self._timer_budget += float(TIMER_HZ) / self.cpu_hz
            while self._timer_budget >= 1.0:
                self._timer_budget -= 1.0
                self.tick_timers()
        return executed

    def dump_registers(self):
        return str(self.cpu)

    def dump_screen(self):
        return self.cpu.screen.render_text()

    def dump_memory(self, start=0, end=None):
        return self.cpu.memory.dump(start, end)

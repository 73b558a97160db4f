import logging
import random
from collections import namedtuple

from .decoder import Op, decode
from .exception import MemoryOutOfBoundsException
from .framebuffer import FrameBuffer
from .keypad import Keypad
from .memory import (
    FONT_SPRITE_SIZE, FONT_START_ADDRESS, PROGRAM_COUNTER_START, CallStack,
    Memory
)
from .timers import Timers

logger = logging.getLogger(__name__)

# The total number of registers in the Chip 8 CPU
NUM_REGISTERS = 0x10

# The flag register
FLAG_REGISTER = 0xF

# Behaviours that differ between Chip 8 interpreters.
#
#   shift_uses_vy            - 8xy6 / 8xyE shift Vy into Vx (COSMAC VIP) rather
#                              than shifting Vx in place
#   load_store_increments_i  - Fx55 / Fx65 leave I pointing past the last
#                              register transferred
Quirks = namedtuple('Quirks', 'shift_uses_vy load_store_increments_i')

DEFAULT_QUIRKS = Quirks(shift_uses_vy=True, load_store_increments_i=True)


class CPU(object):
    """
    A class to emulate a Chip 8 CPU. There are several good resources out on
    the web that describe the internals of the Chip 8 CPU. For example:

        http://devernay.free.fr/hacks/chip8/C8TECH10.HTM
        http://michael.toren.net/mirrors/chip8/chip8def.htm

    To summarize these sources, the Chip 8 has:

        * 16 x 8-bit general purpose registers (V0 - VF**)
        * 1 x 16-bit index register (I)
        * 1 x 16-bit program counter (PC)
        * 1 x 16 entry return address stack
        * 1 x 8-bit delay timer (DT)
        * 1 x 8-bit sound timer (ST)

    ** VF is a special register - it is used to store the carry, borrow and
    collision flags. It can still be used as a general purpose register, but
    those instructions overwrite it.

    The CPU owns all of the machine state: memory, registers, stack, timers,
    the frame buffer and the keypad. Nothing here talks to a window; the host
    reads cpu.screen and cpu.timers and writes to cpu.keypad.
    """
    def __init__(self, screen=None, keypad=None, quirks=DEFAULT_QUIRKS,
                 rng=None, trace=False):
        """
        Initialize the Chip8 CPU.

        :param screen: the FrameBuffer to draw on (a new one if None)
        :param keypad: the Keypad to read (a new one if None)
        :param quirks: the Quirks to emulate
        :param rng: a random.Random used by RND (a new one if None)
        :param trace: log every instruction executed at DEBUG level
        """
        self.screen = screen if screen is not None else FrameBuffer()
        self.keypad = keypad if keypad is not None else Keypad()
        self.quirks = quirks
        self.rng = rng if rng is not None else random.Random()
        self.trace = trace

        self.memory = Memory()
        self.stack = CallStack()
        self.timers = Timers()

        # Defines the general purpose, index and program counter registers.
        self.registers = {
            'v': [],
            'index': 0,
            'pc': 0,
        }

        # The operation_lookup table maps every decoded instruction kind to
        # the routine that executes it.
        self.operation_lookup = {
            Op.SYS: self.machine_code_call,                  # 0nnn
            Op.CLS: self.clear_screen,                       # 00E0
            Op.RET: self.return_from_subroutine,             # 00EE
            Op.JP: self.jump_to_address,                     # 1nnn
            Op.CALL: self.jump_to_subroutine,                # 2nnn
            Op.SE_VX_NN: self.skip_if_reg_equal_val,         # 3xnn
            Op.SNE_VX_NN: self.skip_if_reg_not_equal_val,    # 4xnn
            Op.SE_VX_VY: self.skip_if_reg_equal_reg,         # 5xy0
            Op.LD_VX_NN: self.move_value_to_reg,             # 6xnn
            Op.ADD_VX_NN: self.add_value_to_reg,             # 7xnn
            Op.LD_VX_VY: self.move_reg_into_reg,             # 8xy0
            Op.OR: self.logical_or,                          # 8xy1
            Op.AND: self.logical_and,                        # 8xy2
            Op.XOR: self.exclusive_or,                       # 8xy3
            Op.ADD_VX_VY: self.add_reg_to_reg,               # 8xy4
            Op.SUB: self.subtract_reg_from_reg,              # 8xy5
            Op.SHR: self.right_shift_reg,                    # 8xy6
            Op.SUBN: self.subtract_reg_from_reg_negated,     # 8xy7
            Op.SHL: self.left_shift_reg,                     # 8xyE
            Op.SNE_VX_VY: self.skip_if_reg_not_equal_reg,    # 9xy0
            Op.LD_I: self.load_index_reg_with_value,         # Annn
            Op.JP_V0: self.jump_to_v0_plus_value,            # Bnnn
            Op.RND: self.generate_random_number,             # Cxnn
            Op.DRW: self.draw_sprite,                        # Dxyn
            Op.SKP: self.skip_if_key_pressed,                # Ex9E
            Op.SKNP: self.skip_if_key_not_pressed,           # ExA1
            Op.LD_VX_DT: self.move_delay_timer_into_reg,     # Fx07
            Op.LD_VX_K: self.wait_for_keypress,              # Fx0A
            Op.LD_DT_VX: self.move_reg_into_delay_timer,     # Fx15
            Op.LD_ST_VX: self.move_reg_into_sound_timer,     # Fx18
            Op.ADD_I_VX: self.add_reg_into_index,            # Fx1E
            Op.LD_F_VX: self.load_index_with_reg_sprite,     # Fx29
            Op.LD_B_VX: self.store_bcd_in_memory,            # Fx33
            Op.LD_MEM_VX: self.store_regs_in_memory,         # Fx55
            Op.LD_VX_MEM: self.read_regs_from_memory,        # Fx65
        }

        # Keys held down when Fx0A started waiting; None when not waiting.
        self.keys_held_at_wait = None
        self.last_instruction = None
        self.reset()

    def __str__(self):
        last = self.last_instruction
        val = 'PC: {:04X}  OP: {}\n'.format(
            self.registers['pc'],
            '{:04X}'.format(last.raw) if last is not None else '----')
        for index in range(NUM_REGISTERS):
            val += 'V{:X}: {:02X}\n'.format(index, self.registers['v'][index])
        val += 'I: {:04X}\n'.format(self.registers['index'])
        val += 'SP: {}  STACK: {}\n'.format(
            len(self.stack),
            ' '.join('{:03X}'.format(address) for address in self.stack.addresses))
        val += 'DT: {:02X}  ST: {:02X}'.format(self.timers.delay, self.timers.sound)
        return val

    @property
    def pc(self):
        return self.registers['pc']

    @property
    def v(self):
        return self.registers['v']

    @property
    def index(self):
        return self.registers['index']

    @property
    def waiting_for_key(self):
        return self.keys_held_at_wait is not None

    def set_pc(self, address):
        if not 0 <= address < len(self.memory):
            raise MemoryOutOfBoundsException(address)
        self.registers['pc'] = address

    def skip_next_instruction(self):
        self.registers['pc'] += 2

    def execute_instruction(self, operand=None):
        """
        Execute the next instruction pointed to by the program counter.
        For testing purposes, pass the operand directly to the function.
        When the operand is not passed directly to the function, it is
        fetched from memory and the program counter is increased by 2
        before the instruction runs.

        If decoding fails, the program counter still points at the bad
        instruction.

        :param operand: the operand to execute
        :return: the Instruction executed
        """
        address = self.registers['pc']
        if operand is None:
            operand = self.memory.read_word(address)
            instruction = decode(operand, address)
            self.registers['pc'] = address + 2
        else:
            instruction = decode(operand, address)

        if self.trace:
            logger.debug('0x%04X: %s', address, instruction)

        self.last_instruction = instruction
        self.operation_lookup[instruction.kind](instruction)
        return instruction

    def machine_code_call(self, instruction):
        """
        0nnn - SYS nnn

        Jump to a machine code routine of the host computer. Interpreters
        have always ignored this, so it does nothing.
        """

    def clear_screen(self, instruction):
        """
        00E0 - CLS

        Turn off every pixel. VF is not affected.
        """
        self.screen.clear()

    def return_from_subroutine(self, instruction):
        """
        00EE - RET

        Pop the return address off of the stack and jump to it.
        """
        address = self.stack.pop(pc=self.registers['pc'] - 2)
        self.set_pc(address)

    def jump_to_address(self, instruction):
        """
        1nnn - JP nnn

        Jump to address. The address to jump to is calculated using the bits
        taken from the operand as follows:

           Bits:  15-12    11-8      7-4      3-0
                  unused  address  address  address
        """
        self.set_pc(instruction.nnn)

    def jump_to_subroutine(self, instruction):
        """
        2nnn - CALL nnn

        Jump to subroutine. Save the current program counter (which already
        points past the CALL) on the stack. The subroutine to jump to is taken
        from the operand as follows:

           Bits:  15-12    11-8      7-4      3-0
                  unused  address  address  address
        """
        self.stack.push(self.registers['pc'], pc=self.registers['pc'] - 2)
        self.set_pc(instruction.nnn)

    def skip_if_reg_equal_val(self, instruction):
        """
        3xnn - SE Vx, nn

        Skip if register contents equal to constant value:

           Bits:  15-12     11-8      7-4       3-0
                  unused   source  constant  constant

        The program counter is updated to skip the next instruction by
        advancing it by 2 bytes.
        """
        if self.registers['v'][instruction.x] == instruction.nn:
            self.skip_next_instruction()

    def skip_if_reg_not_equal_val(self, instruction):
        """
        4xnn - SNE Vx, nn

        Skip if register contents not equal to constant value:

           Bits:  15-12     11-8      7-4       3-0
                  unused   source  constant  constant
        """
        if self.registers['v'][instruction.x] != instruction.nn:
            self.skip_next_instruction()

    def skip_if_reg_equal_reg(self, instruction):
        """
        5xy0 - SE Vx, Vy

        Skip if source register is equal to target register:

           Bits:  15-12     11-8      7-4       3-0
                  unused   source    target      0
        """
        v = self.registers['v']
        if v[instruction.x] == v[instruction.y]:
            self.skip_next_instruction()

    def move_value_to_reg(self, instruction):
        """
        6xnn - LD Vx, nn

        Move the constant value into the specified register:

           Bits:  15-12     11-8      7-4       3-0
                  unused   target    value     value
        """
        self.registers['v'][instruction.x] = instruction.nn

    def add_value_to_reg(self, instruction):
        """
        7xnn - ADD Vx, nn

        Add the constant value to the specified register. The result wraps
        around at 256 and no carry is recorded:

           Bits:  15-12     11-8      7-4       3-0
                  unused   target    value     value
        """
        v = self.registers['v']
        v[instruction.x] = (v[instruction.x] + instruction.nn) & 0xFF

    def move_reg_into_reg(self, instruction):
        """
        8xy0 - LD Vx, Vy

        Move the value of the source register into the target register:

           Bits:  15-12     11-8      7-4       3-0
                  unused   target    source      0
        """
        v = self.registers['v']
        v[instruction.x] = v[instruction.y]

    def logical_or(self, instruction):
        """
        8xy1 - OR Vx, Vy
        """
        v = self.registers['v']
        v[instruction.x] |= v[instruction.y]

    def logical_and(self, instruction):
        """
        8xy2 - AND Vx, Vy
        """
        v = self.registers['v']
        v[instruction.x] &= v[instruction.y]

    def exclusive_or(self, instruction):
        """
        8xy3 - XOR Vx, Vy
        """
        v = self.registers['v']
        v[instruction.x] ^= v[instruction.y]

    def add_reg_to_reg(self, instruction):
        """
        8xy4 - ADD Vx, Vy

        Add the value in the source register to the value in the target
        register, and store the result in the target register:

           Bits:  15-12     11-8      7-4       3-0
                  unused   target    source      4

        If a carry is generated, set a carry flag in register VF.
        """
        v = self.registers['v']
        total = v[instruction.x] + v[instruction.y]
        v[instruction.x] = total & 0xFF
        v[FLAG_REGISTER] = 1 if total > 0xFF else 0

    def subtract_reg_from_reg(self, instruction):
        """
        8xy5 - SUB Vx, Vy

        Subtract the source register from the target register, and store the
        result in the target register:

           Bits:  15-12     11-8      7-4       3-0
                  unused   target    source      5

        If a borrow is NOT generated, set a carry flag in register VF.
        """
        v = self.registers['v']
        target, source = v[instruction.x], v[instruction.y]
        v[instruction.x] = (target - source) & 0xFF
        v[FLAG_REGISTER] = 1 if target >= source else 0

    def right_shift_reg(self, instruction):
        """
        8xy6 - SHR Vx, Vy

        Shift the bits of the source 1 bit to the right and store them in Vx.
        Bit 0 will be shifted into register VF. The source is Vy, or Vx
        itself when the shift_uses_vy quirk is off.

           Bits:  15-12     11-8      7-4       3-0
                  unused   target    source      6
        """
        v = self.registers['v']
        source = v[instruction.y] if self.quirks.shift_uses_vy else v[instruction.x]
        v[instruction.x] = source >> 1
        v[FLAG_REGISTER] = source & 0x1

    def subtract_reg_from_reg_negated(self, instruction):
        """
        8xy7 - SUBN Vx, Vy

        Subtract the target register from the source register, and store the
        result in the target register:

           Bits:  15-12     11-8      7-4       3-0
                  unused   target    source      7

        If a borrow is NOT generated, set a carry flag in register VF.
        """
        v = self.registers['v']
        target, source = v[instruction.x], v[instruction.y]
        v[instruction.x] = (source - target) & 0xFF
        v[FLAG_REGISTER] = 1 if source >= target else 0

    def left_shift_reg(self, instruction):
        """
        8xyE - SHL Vx, Vy

        Shift the bits of the source 1 bit to the left and store them in Vx.
        Bit 7 will be shifted into register VF.

           Bits:  15-12     11-8      7-4       3-0
                  unused   target    source      E
        """
        v = self.registers['v']
        source = v[instruction.y] if self.quirks.shift_uses_vy else v[instruction.x]
        v[instruction.x] = (source << 1) & 0xFF
        v[FLAG_REGISTER] = (source & 0x80) >> 7

    def skip_if_reg_not_equal_reg(self, instruction):
        """
        9xy0 - SNE Vx, Vy

        Skip if source register is not equal to target register:

           Bits:  15-12     11-8      7-4       3-0
                  unused   source    target      0
        """
        v = self.registers['v']
        if v[instruction.x] != v[instruction.y]:
            self.skip_next_instruction()

    def load_index_reg_with_value(self, instruction):
        """
        Annn - LD I, nnn
        """
        self.registers['index'] = instruction.nnn

    def jump_to_v0_plus_value(self, instruction):
        """
        Bnnn - JP V0, nnn

        Jump to the address nnn plus the value of register V0. The sum may
        land past the end of memory, which is a fault.
        """
        self.set_pc(instruction.nnn + self.registers['v'][0])

    def generate_random_number(self, instruction):
        """
        Cxnn - RND Vx, nn

        A random number between 0 and 255 is generated. The contents of it are
        then ANDed with the constant value passed in the operand. The result is
        stored in the target register:

           Bits:  15-12     11-8      7-4       3-0
                  unused    target    value    value
        """
        self.registers['v'][instruction.x] = self.rng.randint(0, 255) & instruction.nn

    def draw_sprite(self, instruction):
        """
        Dxyn - DRW Vx, Vy, n

        Draws the n byte sprite pointed to by the index register at the x and
        y coordinates held in Vx and Vy. Drawing is done via an XOR routine,
        meaning that if the target pixel is already turned on, and a pixel is
        set to be turned on at that same location via the draw, then the pixel
        is turned off. Each sprite is 8 bits (1 byte) wide. For example, assume
        that the index register pointed to the following 7 bytes:

                       bit 0 1 2 3 4 5 6 7

           byte 0          0 1 1 1 1 1 0 0
           byte 1          0 1 0 0 0 0 0 0
           byte 2          0 1 0 0 0 0 0 0
           byte 3          0 1 1 1 1 1 0 0
           byte 4          0 1 0 0 0 0 0 0
           byte 5          0 1 0 0 0 0 0 0
           byte 6          0 1 1 1 1 1 0 0

        This would draw a character on the screen that looks like an 'E'. If
        writing a pixel to a location causes that pixel to be turned off, then
        VF will be set to 1, otherwise it is set to 0.

           Bits:  15-12     11-8      7-4       3-0
                  unused    x_source  y_source  num_bytes
        """
        v = self.registers['v']
        rows = self.memory.read_block(self.registers['index'], instruction.n)
        collision = self.screen.draw_sprite(v[instruction.x], v[instruction.y], rows)
        v[FLAG_REGISTER] = 1 if collision else 0

    def skip_if_key_pressed(self, instruction):
        """
        Ex9E - SKP Vx

        Skip the next instruction if the key whose number is in Vx is held.
        Only the low nibble of Vx is used.
        """
        if self.keypad.is_pressed(self.registers['v'][instruction.x] & 0xF):
            self.skip_next_instruction()

    def skip_if_key_not_pressed(self, instruction):
        """
        ExA1 - SKNP Vx

        Skip the next instruction if the key whose number is in Vx is NOT
        held. Only the low nibble of Vx is used.
        """
        if not self.keypad.is_pressed(self.registers['v'][instruction.x] & 0xF):
            self.skip_next_instruction()

    def move_delay_timer_into_reg(self, instruction):
        """
        Fx07 - LD Vx, DT
        """
        self.registers['v'][instruction.x] = self.timers.delay

    def wait_for_keypress(self, instruction):
        """
        Fx0A - LD Vx, K

        Stop execution until a key is pressed, then move the number of the key
        into Vx. The host is never blocked: while no new key press has been
        seen, the program counter is moved back onto this instruction so that
        the next step executes it again. Keys already held down when the wait
        started only count once they have been released and pressed again.
        """
        held = self.keypad.pressed_keys()
        if self.keys_held_at_wait is None:
            self.keys_held_at_wait = set(held)
        else:
            self.keys_held_at_wait.intersection_update(held)
            for key in held:
                if key not in self.keys_held_at_wait:
                    self.registers['v'][instruction.x] = key
                    self.keys_held_at_wait = None
                    return
        self.set_pc(self.registers['pc'] - 2)

    def move_reg_into_delay_timer(self, instruction):
        """
        Fx15 - LD DT, Vx
        """
        self.timers.delay = self.registers['v'][instruction.x]

    def move_reg_into_sound_timer(self, instruction):
        """
        Fx18 - LD ST, Vx
        """
        self.timers.sound = self.registers['v'][instruction.x]

    def add_reg_into_index(self, instruction):
        """
        Fx1E - ADD I, Vx

        Add the value of the register into the index register. VF is not
        affected; the index register wraps at 16 bits.
        """
        index = self.registers['index'] + self.registers['v'][instruction.x]
        self.registers['index'] = index & 0xFFFF

    def load_index_with_reg_sprite(self, instruction):
        """
        Fx29 - LD F, Vx

        Load the index with the font sprite for the hex digit in Vx. All font
        sprites are 5 bytes long, so the location of the specified sprite is
        the font address plus the digit multiplied by 5.
        """
        digit = self.registers['v'][instruction.x] & 0xF
        self.registers['index'] = FONT_START_ADDRESS + digit * FONT_SPRITE_SIZE

    def store_bcd_in_memory(self, instruction):
        """
        Fx33 - LD B, Vx

        Take the value stored in Vx and place the digits in the following
        locations:

            hundreds   -> memory[index]
            tens       -> memory[index + 1]
            ones       -> memory[index + 2]

        For example, if the value is 123, then 1, 2 and 3 are stored.
        """
        value = self.registers['v'][instruction.x]
        self.memory.write_block(
            self.registers['index'], (value // 100, (value // 10) % 10, value % 10))

    def store_regs_in_memory(self, instruction):
        """
        Fx55 - LD [I], Vx

        Store registers V0 through Vx in the memory pointed to by the index
        register. For example, to store all of the V registers, x would be F.
        """
        count = instruction.x + 1
        self.memory.write_block(
            self.registers['index'], self.registers['v'][:count])
        if self.quirks.load_store_increments_i:
            self.registers['index'] = (self.registers['index'] + count) & 0xFFFF

    def read_regs_from_memory(self, instruction):
        """
        Fx65 - LD Vx, [I]

        Read registers V0 through Vx from the memory pointed to by the index
        register.
        """
        count = instruction.x + 1
        values = self.memory.read_block(self.registers['index'], count)
        self.registers['v'][:count] = list(values)
        if self.quirks.load_store_increments_i:
            self.registers['index'] = (self.registers['index'] + count) & 0xFFFF

    def decrement_timers(self):
        self.timers.tick()

    def load_program(self, program):
        self.memory.load_program(program, PROGRAM_COUNTER_START)

    def reset(self):
        """
        Reset the CPU by blanking out memory and all registers, reloading the
        font, emptying the stack and reseting the program counter to its
        starting value. The screen and the keypad are cleared as well.
        """
        self.memory.clear()
        self.memory.load_font()
        self.registers['v'] = [0] * NUM_REGISTERS
        self.registers['pc'] = PROGRAM_COUNTER_START
        self.registers['index'] = 0
        self.stack.clear()
        self.timers.reset()
        self.screen.clear()
        self.keypad.release_all()
        self.keys_held_at_wait = None
        self.last_instruction = None

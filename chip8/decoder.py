"""
Turns raw 16-bit Chip 8 words into Instruction tuples.

Every instruction is made up of four nibbles. Depending on the instruction,
the operand nibbles are read as registers, a byte constant, a 12-bit
address or a small count:

   Bits:  15-12     11-8      7-4       3-0
          family     x         y         n
                              nn ------------
                    nnn ----------------------

This module is the only place that looks at opcode bits. The CPU dispatches
on Instruction.kind.
"""
from collections import namedtuple
from enum import Enum

from .exception import UnknownOpCodeException


class Op(Enum):
    SYS = 'SYS'                # 0nnn - SYS  nnn
    CLS = 'CLS'                # 00E0 - CLS
    RET = 'RET'                # 00EE - RET
    JP = 'JP'                  # 1nnn - JP   nnn
    CALL = 'CALL'              # 2nnn - CALL nnn
    SE_VX_NN = 'SE_VX_NN'      # 3xnn - SE   Vx, nn
    SNE_VX_NN = 'SNE_VX_NN'    # 4xnn - SNE  Vx, nn
    SE_VX_VY = 'SE_VX_VY'      # 5xy0 - SE   Vx, Vy
    LD_VX_NN = 'LD_VX_NN'      # 6xnn - LD   Vx, nn
    ADD_VX_NN = 'ADD_VX_NN'    # 7xnn - ADD  Vx, nn
    LD_VX_VY = 'LD_VX_VY'      # 8xy0 - LD   Vx, Vy
    OR = 'OR'                  # 8xy1 - OR   Vx, Vy
    AND = 'AND'                # 8xy2 - AND  Vx, Vy
    XOR = 'XOR'                # 8xy3 - XOR  Vx, Vy
    ADD_VX_VY = 'ADD_VX_VY'    # 8xy4 - ADD  Vx, Vy
    SUB = 'SUB'                # 8xy5 - SUB  Vx, Vy
    SHR = 'SHR'                # 8xy6 - SHR  Vx, Vy
    SUBN = 'SUBN'              # 8xy7 - SUBN Vx, Vy
    SHL = 'SHL'                # 8xyE - SHL  Vx, Vy
    SNE_VX_VY = 'SNE_VX_VY'    # 9xy0 - SNE  Vx, Vy
    LD_I = 'LD_I'              # Annn - LD   I, nnn
    JP_V0 = 'JP_V0'            # Bnnn - JP   V0, nnn
    RND = 'RND'                # Cxnn - RND  Vx, nn
    DRW = 'DRW'                # Dxyn - DRW  Vx, Vy, n
    SKP = 'SKP'                # Ex9E - SKP  Vx
    SKNP = 'SKNP'              # ExA1 - SKNP Vx
    LD_VX_DT = 'LD_VX_DT'      # Fx07 - LD   Vx, DT
    LD_VX_K = 'LD_VX_K'        # Fx0A - LD   Vx, K
    LD_DT_VX = 'LD_DT_VX'      # Fx15 - LD   DT, Vx
    LD_ST_VX = 'LD_ST_VX'      # Fx18 - LD   ST, Vx
    ADD_I_VX = 'ADD_I_VX'      # Fx1E - ADD  I, Vx
    LD_F_VX = 'LD_F_VX'        # Fx29 - LD   F, Vx
    LD_B_VX = 'LD_B_VX'        # Fx33 - LD   B, Vx
    LD_MEM_VX = 'LD_MEM_VX'    # Fx55 - LD   [I], Vx
    LD_VX_MEM = 'LD_VX_MEM'    # Fx65 - LD   Vx, [I]


# Families decided by the high nibble alone
FAMILY_LOOKUP = {
    0x1: Op.JP,
    0x2: Op.CALL,
    0x3: Op.SE_VX_NN,
    0x4: Op.SNE_VX_NN,
    0x6: Op.LD_VX_NN,
    0x7: Op.ADD_VX_NN,
    0xA: Op.LD_I,
    0xB: Op.JP_V0,
    0xC: Op.RND,
    0xD: Op.DRW,
}

# 0x00nn, keyed by the low byte
SYSTEM_LOOKUP = {
    0xE0: Op.CLS,
    0xEE: Op.RET,
}

# 0x8xyn, keyed by the low nibble
LOGICAL_LOOKUP = {
    0x0: Op.LD_VX_VY,
    0x1: Op.OR,
    0x2: Op.AND,
    0x3: Op.XOR,
    0x4: Op.ADD_VX_VY,
    0x5: Op.SUB,
    0x6: Op.SHR,
    0x7: Op.SUBN,
    0xE: Op.SHL,
}

# 0x5xy0 and 0x9xy0 must end in a zero nibble
REGISTER_COMPARE_LOOKUP = {
    0x5: Op.SE_VX_VY,
    0x9: Op.SNE_VX_VY,
}

# 0xExnn, keyed by the low byte
KEYBOARD_LOOKUP = {
    0x9E: Op.SKP,
    0xA1: Op.SKNP,
}

# 0xFxnn, keyed by the low byte
MISC_LOOKUP = {
    0x07: Op.LD_VX_DT,
    0x0A: Op.LD_VX_K,
    0x15: Op.LD_DT_VX,
    0x18: Op.LD_ST_VX,
    0x1E: Op.ADD_I_VX,
    0x29: Op.LD_F_VX,
    0x33: Op.LD_B_VX,
    0x55: Op.LD_MEM_VX,
    0x65: Op.LD_VX_MEM,
}

# Disassembly templates, formatted with the Instruction fields
MNEMONICS = {
    Op.SYS: 'SYS  {nnn:03X}',
    Op.CLS: 'CLS',
    Op.RET: 'RET',
    Op.JP: 'JP   {nnn:03X}',
    Op.CALL: 'CALL {nnn:03X}',
    Op.SE_VX_NN: 'SE   V{x:X}, {nn:02X}',
    Op.SNE_VX_NN: 'SNE  V{x:X}, {nn:02X}',
    Op.SE_VX_VY: 'SE   V{x:X}, V{y:X}',
    Op.LD_VX_NN: 'LD   V{x:X}, {nn:02X}',
    Op.ADD_VX_NN: 'ADD  V{x:X}, {nn:02X}',
    Op.LD_VX_VY: 'LD   V{x:X}, V{y:X}',
    Op.OR: 'OR   V{x:X}, V{y:X}',
    Op.AND: 'AND  V{x:X}, V{y:X}',
    Op.XOR: 'XOR  V{x:X}, V{y:X}',
    Op.ADD_VX_VY: 'ADD  V{x:X}, V{y:X}',
    Op.SUB: 'SUB  V{x:X}, V{y:X}',
    Op.SHR: 'SHR  V{x:X}, V{y:X}',
    Op.SUBN: 'SUBN V{x:X}, V{y:X}',
    Op.SHL: 'SHL  V{x:X}, V{y:X}',
    Op.SNE_VX_VY: 'SNE  V{x:X}, V{y:X}',
    Op.LD_I: 'LD   I, {nnn:03X}',
    Op.JP_V0: 'JP   V0, {nnn:03X}',
    Op.RND: 'RND  V{x:X}, {nn:02X}',
    Op.DRW: 'DRW  V{x:X}, V{y:X}, {n:X}',
    Op.SKP: 'SKP  V{x:X}',
    Op.SKNP: 'SKNP V{x:X}',
    Op.LD_VX_DT: 'LD   V{x:X}, DT',
    Op.LD_VX_K: 'LD   V{x:X}, K',
    Op.LD_DT_VX: 'LD   DT, V{x:X}',
    Op.LD_ST_VX: 'LD   ST, V{x:X}',
    Op.ADD_I_VX: 'ADD  I, V{x:X}',
    Op.LD_F_VX: 'LD   F, V{x:X}',
    Op.LD_B_VX: 'LD   B, V{x:X}',
    Op.LD_MEM_VX: 'LD   [I], V{x:X}',
    Op.LD_VX_MEM: 'LD   V{x:X}, [I]',
}


class Instruction(namedtuple('Instruction', 'kind raw x y n nn nnn')):
    """
    A decoded instruction. All operand fields are always filled in from the
    raw word; each handler reads only the ones its instruction uses.
    """
    __slots__ = ()

    def mnemonic(self):
        return MNEMONICS[self.kind].format(**self._asdict())

    def __str__(self):
        return '{:04X}  {}'.format(self.raw, self.mnemonic())


def decode_kind(raw):
    """
    Work out which instruction a raw word encodes.

    :param raw: the 16-bit instruction word
    :return: the Op, or None if the word is not a Chip 8 instruction
    """
    family = (raw & 0xF000) >> 12
    low_byte = raw & 0x00FF
    low_nibble = raw & 0x000F

    if family in FAMILY_LOOKUP:
        return FAMILY_LOOKUP[family]
    if family == 0x0:
        if raw & 0x0F00 == 0:
            return SYSTEM_LOOKUP.get(low_byte, Op.SYS)
        return Op.SYS
    if family == 0x8:
        return LOGICAL_LOOKUP.get(low_nibble)
    if family in REGISTER_COMPARE_LOOKUP:
        if low_nibble != 0:
            return None
        return REGISTER_COMPARE_LOOKUP[family]
    if family == 0xE:
        return KEYBOARD_LOOKUP.get(low_byte)
    return MISC_LOOKUP.get(low_byte)


def decode(raw, address=None):
    """
    Decode a raw 16-bit word into an Instruction.

    :param raw: the instruction word
    :param address: where the word was fetched from, for error reporting
    :return: the decoded Instruction
    """
    kind = decode_kind(raw)
    if kind is None:
        raise UnknownOpCodeException(raw, address)
    return Instruction(
        kind=kind,
        raw=raw,
        x=(raw & 0x0F00) >> 8,
        y=(raw & 0x00F0) >> 4,
        n=raw & 0x000F,
        nn=raw & 0x00FF,
        nnn=raw & 0x0FFF,
    )

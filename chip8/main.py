import argparse
import logging
import sys

import pygame

from .cpu import Quirks
from .decoder import decode_kind, decode
from .exception import Chip8Exception, LoadException
from .interpreter import DEFAULT_CPU_HZ, Interpreter
from .memory import PROGRAM_COUNTER_START
from .screen import Screen

logger = logging.getLogger('chip8')

# The number of frames drawn per second
FRAME_RATE = 60

# Exit codes
EXIT_OK = 0
EXIT_FAULT = 1
EXIT_LOAD_ERROR = 2

# Sets which keys on the keyboard map to the Chip 8 keys:
#
#   1 2 3 C        1 2 3 4
#   4 5 6 D   <-   Q W E R
#   7 8 9 E        A S D F
#   A 0 B F        Z X C V
KEY_MAPPINGS = {
    pygame.K_1: 0x1,
    pygame.K_2: 0x2,
    pygame.K_3: 0x3,
    pygame.K_4: 0xC,
    pygame.K_q: 0x4,
    pygame.K_w: 0x5,
    pygame.K_e: 0x6,
    pygame.K_r: 0xD,
    pygame.K_a: 0x7,
    pygame.K_s: 0x8,
    pygame.K_d: 0x9,
    pygame.K_f: 0xE,
    pygame.K_z: 0xA,
    pygame.K_x: 0x0,
    pygame.K_c: 0xB,
    pygame.K_v: 0xF,
}


def handle_debug_key(interpreter, event_key):
    """
    Run the debugger command bound to a function key.

    :param interpreter: the running Interpreter
    :param event_key: the pygame key code
    """
    if event_key == pygame.K_F5:
        interpreter.toggle_pause()
    elif event_key == pygame.K_F6:
        if interpreter.paused:
            interpreter.single_step()
            logger.info("\n%s", interpreter.dump_registers())
    elif event_key == pygame.K_F7:
        interpreter.reset()
    elif event_key == pygame.K_F8:
        logger.info("Registers:\n%s", interpreter.dump_registers())
    elif event_key == pygame.K_F9:
        logger.info("Screen:\n%s", interpreter.dump_screen())
    elif event_key == pygame.K_F10:
        logger.info("Memory:\n%s", interpreter.dump_memory())
    elif event_key == pygame.K_F11:
        interpreter.cpu.trace = not interpreter.cpu.trace
        if interpreter.cpu.trace:
            logging.getLogger('chip8').setLevel(logging.DEBUG)
        logger.info("Instruction trace %s", "on" if interpreter.cpu.trace else "off")


def screen_cpu_connector(args):
    """
    Runs the main emulator loop with the specified arguments.

    :param args: the parsed command-line arguments
    :return: the process exit code
    """
    quirks = Quirks(shift_uses_vy=args.shift_vy,
                    load_store_increments_i=args.increment_i)
    interpreter = Interpreter(cpu_hz=args.cpu_hz, quirks=quirks, trace=args.trace)
    try:
        interpreter.load_file(args.rom)
    except LoadException as error:
        logger.error("%s", error)
        return EXIT_LOAD_ERROR

    pygame.init()
    project_screen = Screen(ratio=args.scale)
    project_screen.init_display()
    clock = pygame.time.Clock()
    if args.debug:
        interpreter.pause()

    try:
        while interpreter.running:
            elapsed = clock.tick(FRAME_RATE) / 1000.0

            # Check for events
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    interpreter.stop()
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_ESCAPE:
                        interpreter.stop()
                    elif event.key in KEY_MAPPINGS:
                        interpreter.keypad.key_down(KEY_MAPPINGS[event.key])
                    else:
                        handle_debug_key(interpreter, event.key)
                elif event.type == pygame.KEYUP and event.key in KEY_MAPPINGS:
                    interpreter.keypad.key_up(KEY_MAPPINGS[event.key])

            interpreter.advance(elapsed)
            project_screen.render(interpreter.screen)
            project_screen.set_caption(
                'paused' if interpreter.paused
                else ('beep' if interpreter.sound_active else 'running'))
    except Chip8Exception as error:
        logger.error("%s\n%s", error, interpreter.dump_registers())
        return EXIT_FAULT
    finally:
        project_screen.close()
        pygame.quit()

    return EXIT_OK


def disassemble(program, offset=PROGRAM_COUNTER_START):
    """
    Turn a program image into listing lines, one per 16-bit word.

    :param program: the raw program bytes
    :param offset: the address the program is loaded at
    :return: a list of strings
    """
    lines = []
    for position in range(0, len(program) - 1, 2):
        raw = (program[position] << 8) | program[position + 1]
        if decode_kind(raw) is None:
            text = '????'
        else:
            text = decode(raw).mnemonic()
        lines.append('{:03X}: {:04X}  {}'.format(offset + position, raw, text))
    if len(program) % 2:
        lines.append('{:03X}: {:02X}'.format(offset + len(program) - 1, program[-1]))
    return lines


def run_disassembler(args):
    try:
        with open(args.rom, 'rb') as rom_file:
            program = rom_file.read()
    except OSError as error:
        logger.error("Cannot read ROM %s: %s", args.rom, error)
        return EXIT_LOAD_ERROR
    for line in disassemble(program):
        print(line)
    return EXIT_OK


def build_parser():
    parser = argparse.ArgumentParser(
        prog='chip8', description="A Chip 8 interpreter")
    parser.add_argument(
        "-v", "--verbose", help="log debugging information",
        action="store_true")
    subparsers = parser.add_subparsers(dest="command")
    subparsers.required = True

    run_parser = subparsers.add_parser("run", help="run a ROM in a window")
    run_parser.add_argument(
        "rom", help="the ROM file to load on startup")
    run_parser.add_argument(
        "-s", help="the scale factor to apply to the display "
                   "(default is 10)", type=int, default=10, dest="scale")
    run_parser.add_argument(
        "-c", "--cpu-hz", help="the number of instructions to execute per "
                               "second (default is {})".format(DEFAULT_CPU_HZ),
        type=int, default=DEFAULT_CPU_HZ, dest="cpu_hz")
    run_parser.add_argument(
        "--no-shift-vy", help="8xy6 and 8xyE shift Vx in place instead of "
                              "shifting Vy into Vx",
        action="store_false", dest="shift_vy")
    run_parser.add_argument(
        "--no-increment-i", help="Fx55 and Fx65 leave the index register "
                                 "unchanged",
        action="store_false", dest="increment_i")
    run_parser.add_argument(
        "--trace", help="log every instruction executed (implies -v)",
        action="store_true")
    run_parser.add_argument(
        "--debug", help="start paused; F6 steps one instruction",
        action="store_true")
    run_parser.set_defaults(func=screen_cpu_connector)

    disasm_parser = subparsers.add_parser("disasm", help="disassemble a ROM")
    disasm_parser.add_argument("rom", help="the ROM file to disassemble")
    disasm_parser.set_defaults(func=run_disassembler)
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    verbose = args.verbose or getattr(args, 'trace', False)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())

import pytest

from chip8.exception import LoadException, UnknownOpCodeException
from chip8.interpreter import MAX_PROGRAM_SIZE, Interpreter
from tests.conftest import assemble

# Clear, V0 = 5, I = font sprite for V0, draw at (V1, V2), jump to self
DIGIT_FIVE_PROGRAM = assemble(0x00E0, 0x6005, 0xF029, 0xD125, 0x1208)

DIGIT_FIVE = [
    "####....",
    "#.......",
    "####....",
    "...#....",
    "####....",
]


def top_left(interpreter, rows=5, columns=8):
    return [''.join('#' if pixel else '.' for pixel in row[:columns])
            for row in interpreter.screen.snapshot()[:rows]]


def test_digit_five_end_to_end(interpreter):
    interpreter.load(DIGIT_FIVE_PROGRAM)
    executed = interpreter.run(1000)
    assert executed == 1000
    assert interpreter.running
    assert interpreter.cpu.pc == 0x208
    assert top_left(interpreter) == DIGIT_FIVE
    lit = sum(pixel for row in interpreter.screen.snapshot() for pixel in row)
    assert lit == 14

    interpreter.advance(2.0)
    assert top_left(interpreter) == DIGIT_FIVE
    assert interpreter.cpu.pc == 0x208


def test_step_executes_one_instruction(interpreter):
    interpreter.load(assemble(0x6001, 0x6102))
    instruction = interpreter.step()
    assert instruction.raw == 0x6001
    assert interpreter.cpu.pc == 0x202
    assert interpreter.cycles == 1


def test_advance_runs_cpu_and_timers_at_their_own_rates(interpreter):
    interpreter.load(assemble(0x60FF, 0xF015, 0x1204))
    executed = interpreter.advance(1.0)
    assert executed == 600
    assert interpreter.cycles == 600
    assert interpreter.cpu.timers.delay == 255 - 60


@pytest.mark.parametrize("cpu_hz", [300, 500, 1000, 2000])
def test_timer_ticks_do_not_depend_on_cpu_rate(cpu_hz):
    interpreter = Interpreter(cpu_hz=cpu_hz)
    interpreter.load(assemble(0x1200))
    interpreter.cpu.timers.delay = 100
    interpreter.advance(0.5)
    assert interpreter.cpu.timers.delay == 70
    assert interpreter.cycles == cpu_hz // 2


def test_advance_carries_fractions(interpreter):
    interpreter.load(assemble(0x1200))
    interpreter.cpu.timers.delay = 100
    for _ in range(8):
        interpreter.advance(0.0625)
    assert interpreter.cycles == 300
    assert interpreter.cpu.timers.delay == 70


def test_sound_active(interpreter):
    interpreter.load(assemble(0x6002, 0xF018, 0x1204))
    interpreter.run(2)
    assert interpreter.sound_active
    interpreter.tick_timers()
    interpreter.tick_timers()
    assert not interpreter.sound_active


def test_pause_and_resume(interpreter):
    interpreter.load(assemble(0x1200))
    interpreter.pause()
    assert interpreter.paused
    assert interpreter.advance(1.0) == 0
    assert interpreter.run(10) == 0
    interpreter.resume()
    assert interpreter.advance(0.5) == 300


def test_toggle_pause(interpreter):
    interpreter.toggle_pause()
    assert interpreter.paused
    interpreter.toggle_pause()
    assert not interpreter.paused


def test_single_step_while_paused(interpreter):
    interpreter.load(assemble(0x6001, 0x6102))
    interpreter.pause()
    interpreter.single_step()
    assert interpreter.cpu.v[0] == 1
    assert interpreter.cpu.pc == 0x202
    assert interpreter.paused


def test_stop(interpreter):
    interpreter.load(assemble(0x1200))
    interpreter.stop()
    assert not interpreter.running
    assert interpreter.advance(1.0) == 0


def test_reset_reloads_program(interpreter):
    interpreter.load(assemble(0x6042, 0xA300, 0xD011, 0x2300))
    interpreter.run(3)
    interpreter.cpu.keypad.key_down(3)
    interpreter.cpu.timers.sound = 9
    interpreter.stop()

    interpreter.reset()
    cpu = interpreter.cpu
    assert interpreter.running
    assert interpreter.cycles == 0
    assert cpu.pc == 0x200
    assert cpu.v == [0] * 16
    assert cpu.index == 0
    assert cpu.timers.sound == 0
    assert cpu.keypad.pressed_keys() == []
    assert all(pixel == 0 for row in cpu.screen.snapshot() for pixel in row)
    assert cpu.memory.read_block(0x200, 8) == assemble(0x6042, 0xA300, 0xD011, 0x2300)
    interpreter.step()
    assert cpu.v[0] == 0x42


def test_block_until_keypress(interpreter):
    interpreter.load(assemble(0xF50A, 0x1202))
    interpreter.run(50)
    assert interpreter.cpu.pc == 0x200
    interpreter.keypad.key_down(0xE)
    interpreter.step()
    assert interpreter.cpu.pc == 0x202
    assert interpreter.cpu.v[5] == 0xE


def test_timers_keep_running_while_waiting_for_key(interpreter):
    interpreter.load(assemble(0xF50A))
    interpreter.cpu.timers.delay = 60
    interpreter.advance(0.5)
    assert interpreter.cpu.timers.delay == 30
    assert interpreter.cpu.pc == 0x200


def test_load_too_large_keeps_previous_program(interpreter):
    interpreter.load(assemble(0x1200))
    with pytest.raises(LoadException):
        interpreter.load(b'\x00' * (MAX_PROGRAM_SIZE + 1))
    assert interpreter.program == assemble(0x1200)
    assert interpreter.cpu.memory.read_word(0x200) == 0x1200


def test_load_largest_program(interpreter):
    interpreter.load(b'\x12\x00' * (MAX_PROGRAM_SIZE // 2))
    assert interpreter.cpu.memory.read_word(0xFFE) == 0x1200


def test_load_file(interpreter, tmp_path):
    rom = tmp_path / "digit.ch8"
    rom.write_bytes(DIGIT_FIVE_PROGRAM)
    interpreter.load_file(str(rom))
    assert interpreter.program == DIGIT_FIVE_PROGRAM


def test_load_missing_file(interpreter, tmp_path):
    with pytest.raises(LoadException):
        interpreter.load_file(str(tmp_path / "missing.ch8"))


def test_fault_is_raised_between_steps(interpreter):
    interpreter.load(assemble(0x6001, 0xFFFF))
    with pytest.raises(UnknownOpCodeException) as excinfo:
        interpreter.run(10)
    assert excinfo.value.address == 0x202
    assert interpreter.cycles == 1
    assert interpreter.cpu.v[0] == 1


def test_invalid_cpu_rate():
    with pytest.raises(ValueError):
        Interpreter(cpu_hz=0)


def test_dumps(interpreter):
    interpreter.load(DIGIT_FIVE_PROGRAM)
    interpreter.run(4)
    assert 'PC: 0208' in interpreter.dump_registers()
    assert interpreter.dump_screen().splitlines()[0].startswith('####....')
    assert interpreter.dump_memory(0x200, 0x202) == '200: 00 E0'

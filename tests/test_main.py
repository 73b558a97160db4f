import pytest

pytest.importorskip("pygame")

from chip8.main import (  # noqa: E402
    EXIT_LOAD_ERROR, EXIT_OK, KEY_MAPPINGS, build_parser, disassemble, main
)
from tests.conftest import assemble  # noqa: E402


def test_disassemble():
    program = assemble(0x00E0, 0xE0FF, 0xD125) + b'\x12'
    assert disassemble(program) == [
        '200: 00E0  CLS',
        '202: E0FF  ????',
        '204: D125  DRW  V1, V2, 5',
        '206: 12',
    ]


def test_disasm_command(tmp_path, capsys):
    rom = tmp_path / "rom.ch8"
    rom.write_bytes(assemble(0x6005, 0x1202))
    assert main(['disasm', str(rom)]) == EXIT_OK
    out = capsys.readouterr().out.splitlines()
    assert out == ['200: 6005  LD   V0, 05', '202: 1202  JP   202']


def test_disasm_missing_rom(tmp_path):
    assert main(['disasm', str(tmp_path / "missing.ch8")]) == EXIT_LOAD_ERROR


def test_run_missing_rom(tmp_path):
    assert main(['run', str(tmp_path / "missing.ch8")]) == EXIT_LOAD_ERROR


def test_run_rom_too_large(tmp_path):
    rom = tmp_path / "big.ch8"
    rom.write_bytes(b'\x00' * 4000)
    assert main(['run', str(rom)]) == EXIT_LOAD_ERROR


def test_run_options():
    args = build_parser().parse_args(
        ['run', 'game.ch8', '-s', '5', '-c', '1000', '--no-shift-vy', '--debug'])
    assert args.rom == 'game.ch8'
    assert args.scale == 5
    assert args.cpu_hz == 1000
    assert args.shift_vy is False
    assert args.increment_i is True
    assert args.debug is True


def test_command_is_required():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_key_mappings_cover_the_keypad():
    assert sorted(KEY_MAPPINGS.values()) == list(range(16))

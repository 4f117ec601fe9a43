from pathlib import Path

from chip8.cli import build_parser, main, raise_fault, resolve_config
from chip8.errors import StackUnderflow

import pytest


def test_parse_arguments():
    args = build_parser().parse_args(["game.ch8", "--hz", "1200", "--strict", "--seed", "3"])
    assert args.rom == Path("game.ch8")
    config = resolve_config(args)
    assert config.cpu_hz == 1200
    assert config.strict
    assert config.seed == 3
    assert config.scale == 10


def test_config_file_with_overrides(tmp_path):
    path = tmp_path / "c.json"
    path.write_text('{"scale": 3, "cpu_hz": 700}')
    args = build_parser().parse_args(["game.ch8", "--config", str(path), "--scale", "6"])
    config = resolve_config(args)
    assert config.scale == 6
    assert config.cpu_hz == 700


def test_raise_fault():
    with pytest.raises(StackUnderflow):
        raise_fault(StackUnderflow(0x00EE, 0x200))


def test_missing_rom_exits_with_error(tmp_path):
    assert main([str(tmp_path / "nope.ch8")]) == 1


def test_bad_config_exits_with_error(tmp_path):
    path = tmp_path / "c.json"
    path.write_text('{"bogus": 1}')
    assert main([str(tmp_path / "nope.ch8"), "--config", str(path)]) == 2

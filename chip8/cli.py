"""Command line entry point: ``chip8 ROM``."""

import argparse
import logging
import sys
from pathlib import Path

from .config import EmulatorConfig
from .errors import LoadError
from .loader import load_rom
from .machine import Machine

logger = logging.getLogger(__name__)


def raise_fault(fault):
    raise fault


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chip8", description="CHIP-8 interpreter")
    parser.add_argument("rom", type=Path, help="Program image to run")
    parser.add_argument("--config", type=Path, help="JSON configuration file")
    parser.add_argument("--hz", dest="cpu_hz", type=int, default=None, help="Instructions per second")
    parser.add_argument("--scale", type=int, default=None, help="Window pixels per CHIP-8 pixel")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the RND instruction")
    parser.add_argument(
        "--strict",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Stop on stack faults and unknown opcodes instead of skipping them",
    )
    parser.add_argument(
        "--truncate",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Cut oversized images to fit instead of refusing them",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (F1 in the window toggles DEBUG)",
    )
    return parser


def resolve_config(args) -> EmulatorConfig:
    config = EmulatorConfig.load(args.config) if args.config else EmulatorConfig()
    return config.with_overrides(
        cpu_hz=args.cpu_hz,
        scale=args.scale,
        seed=args.seed,
        strict=args.strict,
        truncate=args.truncate,
    )


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level, format="[%(levelname)s] %(name)s: %(message)s")

    try:
        config = resolve_config(args)
    except (OSError, ValueError) as e:
        logger.error("Bad configuration: %s", e)
        return 2

    machine = Machine(seed=config.seed, on_fault=raise_fault if config.strict else None)
    try:
        load_rom(machine, args.rom, truncate=config.truncate)
    except LoadError as e:
        logger.error("%s", e)
        return 1

    # pyglet needs a display, keep it out of the core import path
    from .host import run

    fault = run(machine, config, rom_name=args.rom.stem)
    return 1 if fault is not None else 0


if __name__ == "__main__":
    sys.exit(main())

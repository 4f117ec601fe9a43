# Program loader: copies a ROM image verbatim into memory at 0x200.

import logging
from pathlib import Path

from .constants import MAX_PROGRAM_SIZE, PROGRAM_START
from .errors import LoadError

logger = logging.getLogger(__name__)


def load_program(machine, data, truncate=False):
    """Write ``data`` into ``machine`` memory starting at 0x200.

    Images larger than the space above 0x200 raise LoadError, or are cut to
    fit when ``truncate`` is set. Returns the number of bytes written.
    """
    data = bytes(data)
    if len(data) > MAX_PROGRAM_SIZE:
        if not truncate:
            raise LoadError(
                f"program is {len(data)} bytes, at most {MAX_PROGRAM_SIZE} fit above 0x{PROGRAM_START:03X}"
            )
        logger.warning("Truncating program from %d to %d bytes", len(data), MAX_PROGRAM_SIZE)
        data = data[:MAX_PROGRAM_SIZE]
    machine.memory[PROGRAM_START:PROGRAM_START + len(data)] = data
    logger.debug("Loaded %d bytes at 0x%03X", len(data), PROGRAM_START)
    return len(data)


def load_rom(machine, path, truncate=False):
    """Read a ROM file from disk and load it."""
    path = Path(path)
    logger.info("Loading ROM: %s", path)
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise LoadError(f"cannot read {path}: {e.strerror or e}") from e
    return load_program(machine, data, truncate=truncate)

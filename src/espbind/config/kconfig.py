"""
Generated sdkconfig (kconfig) reader.

ESP-IDF writes the resolved configuration as ``KEY=VALUE`` lines:

    CONFIG_IDF_TARGET="esp32c3"
    CONFIG_FREERTOS_HZ=100
    CONFIG_LOG_DEFAULT_LEVEL_INFO=y
    # CONFIG_ESP_SYSTEM_PANIC_GDBSTUB is not set

Keys keep their ``CONFIG_`` prefix. Entry order is preserved.
"""

import logging
import re
from enum import Enum
from pathlib import Path
from typing import Dict, Union


class Tristate(Enum):
    """Kconfig bool/tristate value."""

    TRUE = "y"
    FALSE = "n"
    MODULE = "m"


Value = Union[Tristate, str, int]

_KEY_RE = re.compile(r"^[A-Za-z0-9_]+$")
_NOT_SET_RE = re.compile(r"^#\s*([A-Za-z0-9_]+) is not set\s*$")


def parse_value(raw: str) -> Value:
    """Parse the right-hand side of a ``KEY=VALUE`` line."""
    raw = raw.strip()

    if len(raw) >= 2 and raw.startswith('"') and raw.endswith('"'):
        return re.sub(r"\\(.)", r"\1", raw[1:-1])

    for tristate in Tristate:
        if raw == tristate.value:
            return tristate

    try:
        return int(raw, 0)
    except ValueError:
        return raw


def parse_sdkconfig(content: str) -> Dict[str, Value]:
    """Parse sdkconfig text.

    Malformed lines are logged and skipped.

    Args:
        content: Text of a generated sdkconfig file

    Returns:
        Mapping of key to value, in file order
    """
    entries: Dict[str, Value] = {}

    for line_no, line in enumerate(content.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue

        not_set = _NOT_SET_RE.match(line)
        if not_set:
            entries[not_set.group(1)] = Tristate.FALSE
            continue

        if line.startswith("#"):
            continue

        key, sep, raw = line.partition("=")
        key = key.strip()
        if not sep or not _KEY_RE.match(key):
            logging.warning(f"Skipping malformed sdkconfig line {line_no}: {line}")
            continue

        entries[key] = parse_value(raw)

    return entries


def read_sdkconfig(path: Path) -> Dict[str, Value]:
    """Read and parse a generated sdkconfig file.

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    return parse_sdkconfig(path.read_text(encoding="utf-8"))

"""Kconfig to rustc cfg translation.

Entries of the generated sdkconfig become ``--cfg`` flags for the crate:

    CONFIG_LOG_DEFAULT_LEVEL_INFO=y   ->  esp_idf_config_log_default_level_info
    CONFIG_IDF_TARGET="esp32c3"       ->  esp_idf_config_idf_target="esp32c3"

Only true booleans are kept, plus entries whose key matches an allow pattern.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Pattern, Tuple, Union

from ..config.kconfig import Tristate, Value, read_sdkconfig
from .cargo import CargoChannel

CFG_PREFIX = "esp_idf"
DEFAULT_ALLOW_PATTERN = r"IDF_TARGET"
CFG_ARGS_METADATA = "EMBUILD_CFG_ARGS"


def to_cfg(prefix: str, key: str, value: Value) -> Optional[str]:
    """Map a kconfig entry to a cfg flag.

    Returns:
        The flag, or None for values that have no cfg form (false, module, numbers)
    """
    name = f"{prefix}_{key.lower()}"
    if value is Tristate.TRUE:
        return name
    if isinstance(value, str):
        escaped = value.replace('"', '\\"')
        return f'{name}="{escaped}"'
    return None


def translate_cfgs(
    entries: Iterable[Tuple[str, Value]],
    allow_pattern: Union[str, Pattern[str]] = DEFAULT_ALLOW_PATTERN,
    prefix: str = CFG_PREFIX,
) -> List[str]:
    """Translate kconfig entries into cfg flags, preserving input order.

    Args:
        entries: (key, value) pairs in file order
        allow_pattern: Keys matching this pattern are kept even if not boolean
        prefix: Namespace prefix of every flag

    Returns:
        List of cfg flags
    """
    pattern = re.compile(allow_pattern) if isinstance(allow_pattern, str) else allow_pattern

    cfgs = []
    for key, value in entries:
        if value is not Tristate.TRUE and not pattern.search(key):
            continue
        cfg = to_cfg(prefix, key, value)
        if cfg is not None:
            cfgs.append(cfg)
    return cfgs


@dataclass
class CfgArgs:
    """Set of cfg flags for the crate being built."""

    args: List[str] = field(default_factory=list)

    @classmethod
    def from_sdkconfig(
        cls,
        path: Path,
        allow_pattern: Union[str, Pattern[str]] = DEFAULT_ALLOW_PATTERN,
        prefix: str = CFG_PREFIX,
    ) -> "CfgArgs":
        """Read a generated sdkconfig and translate it.

        Raises:
            FileNotFoundError: If the sdkconfig doesn't exist
        """
        entries = read_sdkconfig(path)
        return cls(translate_cfgs(entries.items(), allow_pattern, prefix))

    def get(self, name: str) -> Optional[str]:
        """Value of a cfg: "" for a bare flag, the unquoted value for key="value"."""
        for arg in self.args:
            if arg == name:
                return ""
            if arg.startswith(f'{name}="') and arg.endswith('"'):
                return arg[len(name) + 2 : -1].replace('\\"', '"')
        return None

    def output(self, channel: CargoChannel) -> None:
        """Enable every cfg for the current crate."""
        for arg in self.args:
            channel.rustc_cfg(arg)

    def propagate(self, channel: CargoChannel) -> None:
        """Publish the cfgs to dependent crates."""
        channel.set_metadata(CFG_ARGS_METADATA, ":".join(self.args))

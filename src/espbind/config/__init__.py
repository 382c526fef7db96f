"""Configuration resolution modules for espbind."""

from .build_env import BuildEnvironment, ConfigurationError
from .install_dir import InstallDir, InstallDirKind
from .kconfig import Tristate, parse_sdkconfig, read_sdkconfig
from .sdkconfig import SdkconfigResolver, list_specific_sdkconfigs

__all__ = [
    "BuildEnvironment",
    "ConfigurationError",
    "InstallDir",
    "InstallDirKind",
    "Tristate",
    "parse_sdkconfig",
    "read_sdkconfig",
    "SdkconfigResolver",
    "list_specific_sdkconfigs",
]

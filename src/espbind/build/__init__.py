"""Build system components for espbind.

This module provides the pieces the bindings pipeline is assembled from:
- Process execution
- Cargo directive output
- PlatformIO project generation and SCons variable dump
- Search path discovery, cfg and linker argument derivation
- bindgen invocation
"""

from .bindgen import BindgenRunner, clang_target
from .cargo import CargoChannel
from .cfg_args import CfgArgs, translate_cfgs
from .command_executor import BuildError, CommandExecutor, CommandResult
from .include_discovery import DiscoveryWarning, SearchPaths, discover_search_paths
from .link_args import CInclArgs, LinkArgs
from .project import ProjectBuilder, tracked_globs
from .scons_vars import SconsDumpError, SconsVariables

__all__ = [
    "BindgenRunner",
    "clang_target",
    "CargoChannel",
    "CfgArgs",
    "translate_cfgs",
    "BuildError",
    "CommandExecutor",
    "CommandResult",
    "DiscoveryWarning",
    "SearchPaths",
    "discover_search_paths",
    "CInclArgs",
    "LinkArgs",
    "ProjectBuilder",
    "tracked_globs",
    "SconsDumpError",
    "SconsVariables",
]

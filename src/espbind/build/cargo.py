"""Cargo build script output channel.

Cargo reads ``cargo:`` directives from a build script's stdout. Every value
that leaves the pipeline goes through a CargoChannel so it can be captured in
tests.
"""

import sys
from pathlib import Path
from typing import Optional, TextIO, Union


class CargoChannel:
    """Writes Cargo build script directives."""

    def __init__(self, stream: Optional[TextIO] = None):
        """
        Args:
            stream: Output stream (default: sys.stdout)
        """
        self.stream = stream if stream is not None else sys.stdout

    def emit(self, key: str, value: str) -> None:
        print(f"cargo:{key}={value}", file=self.stream)

    def track_file(self, path: Union[str, Path]) -> None:
        """Rerun the build script when ``path`` changes."""
        self.emit("rerun-if-changed", str(path))

    def track_env_var(self, name: str) -> None:
        """Rerun the build script when variable ``name`` changes."""
        self.emit("rerun-if-env-changed", name)

    def warning(self, message: str) -> None:
        self.emit("warning", message)

    def info(self, message: str) -> None:
        self.emit("info", message)

    def rustc_cfg(self, cfg: str) -> None:
        self.emit("rustc-cfg", cfg)

    def rustc_link_arg(self, arg: str) -> None:
        self.emit("rustc-link-arg", arg)

    def set_metadata(self, key: str, value: str) -> None:
        """Publish ``DEP_<links>_<KEY>`` metadata to dependent crates."""
        self.emit(key, value)

"""Install location directive for the PlatformIO toolchain.

The directive comes from $ESP_IDF_TOOLS_INSTALL_DIR (or a default) and selects
one of five strategies:

    global          System-wide PlatformIO location
    workspace       <workspace>/.embuild/<builder>
    out             <OUT_DIR>/<builder>
    fromenv         PlatformIO must already be on $PATH, never installed
    custom:<dir>    <dir>, relative to the workspace unless absolute
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

from .build_env import ESP_IDF_TOOLS_INSTALL_DIR_VAR, ConfigurationError

TOOLS_WORKSPACE_INSTALL_DIR = ".embuild"
CUSTOM_PREFIX = "custom:"


class InstallDirKind(Enum):
    """Strategies an install directive can select."""

    GLOBAL = "global"
    WORKSPACE = "workspace"
    OUT = "out"
    CUSTOM = "custom"
    FROM_ENV = "fromenv"


@dataclass(frozen=True)
class InstallDir:
    """A resolved install location.

    Only the WORKSPACE, OUT and CUSTOM kinds carry a path.
    """

    kind: InstallDirKind
    location: Optional[Path] = None

    @classmethod
    def global_(cls) -> "InstallDir":
        return cls(InstallDirKind.GLOBAL)

    @classmethod
    def workspace(cls, path: Path) -> "InstallDir":
        return cls(InstallDirKind.WORKSPACE, Path(path))

    @classmethod
    def out(cls, path: Path) -> "InstallDir":
        return cls(InstallDirKind.OUT, Path(path))

    @classmethod
    def custom(cls, path: Path) -> "InstallDir":
        return cls(InstallDirKind.CUSTOM, Path(path))

    @classmethod
    def from_env(cls) -> "InstallDir":
        return cls(InstallDirKind.FROM_ENV)

    @property
    def path(self) -> Optional[Path]:
        """Install path, or None for the global and fromenv locations."""
        if self.kind in (InstallDirKind.GLOBAL, InstallDirKind.FROM_ENV):
            return None
        return self.location

    @property
    def is_from_env(self) -> bool:
        return self.kind is InstallDirKind.FROM_ENV

    def __str__(self) -> str:
        if self.path is None:
            return self.kind.value
        return f"{self.kind.value} ({self.path})"

    @classmethod
    def from_env_or(
        cls,
        env_value: Optional[str],
        default_install_dir: str,
        builder_name: str,
        workspace_dir: Optional[Path],
        out_dir: Path,
    ) -> Tuple["InstallDir", bool]:
        """Resolve an install directive.

        If ``env_value`` is unset or blank, ``default_install_dir`` is used
        instead.

        Args:
            env_value: Raw value of $ESP_IDF_TOOLS_INSTALL_DIR (or None)
            default_install_dir: Directive used when env_value is blank
            builder_name: Name of the installed tool (e.g. "platformio")
            workspace_dir: Workspace root, or None if not discoverable
            out_dir: Build script output directory

        Returns:
            Tuple of (install_dir, is_default)

        Raises:
            ConfigurationError: If the directive is not recognized, or it
                needs a workspace root that is not discoverable
        """
        value = env_value.strip() if env_value is not None else ""
        if value:
            location, is_default = value, False
        else:
            location, is_default = default_install_dir, True

        lowered = location.lower()
        if lowered == "global":
            install_dir = cls.global_()
        elif lowered == "workspace":
            install_dir = cls.workspace(
                _require_workspace(workspace_dir, location)
                / TOOLS_WORKSPACE_INSTALL_DIR
                / builder_name
            )
        elif lowered == "out":
            install_dir = cls.out(out_dir / builder_name)
        elif lowered == "fromenv":
            install_dir = cls.from_env()
        elif location.startswith(CUSTOM_PREFIX):
            path = Path(location[len(CUSTOM_PREFIX) :])
            if not path.is_absolute():
                path = _require_workspace(workspace_dir, location) / path
            install_dir = cls.custom(path)
        else:
            raise ConfigurationError(
                f"Invalid installation directory format '{location}' in "
                + f"${ESP_IDF_TOOLS_INSTALL_DIR_VAR}. Should be one of `global`, "
                + "`workspace`, `out`, `fromenv` or `custom:<dir>`."
            )

        return install_dir, is_default


def _require_workspace(workspace_dir: Optional[Path], directive: str) -> Path:
    if workspace_dir is None:
        raise ConfigurationError(
            f"No workspace directory found, but install directory '{directive}' "
            + "requires one"
        )
    return workspace_dir

"""SCons variable dump of a PlatformIO build.

The generated project carries an extra script that runs inside PlatformIO's
SCons environment and writes the resolved build variables to
``__pio_scons_dump.json`` in the project directory. The snapshot is read
once after the build and never modified.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

SCONS_DUMP_FILE = "__pio_scons_dump.json"

# Runs inside PlatformIO (post extra script); "env" is injected by SCons
SCONS_DUMP_SCRIPT = '''\
import json
import os

Import("env")

platform = env.PioPlatform()
board = env.BoardConfig()
framework_dir = None
for framework in env.GetProjectOption("framework", []):
    framework_dir = platform.get_package_dir("framework-" + framework)
    if framework_dir:
        break

dump = {
    "project_dir": env.subst("$PROJECT_DIR"),
    "release_build": env.GetBuildType() == "release",
    "path": env["ENV"]["PATH"],
    "incflags": env.subst("$_CPPINCFLAGS"),
    "defflags": env.subst("$_CPPDEFFLAGS"),
    "libflags": env.subst("$_LIBFLAGS"),
    "libdirflags": env.subst("$_LIBDIRFLAGS"),
    "linkflags": env.subst("$LINKFLAGS"),
    "link": env.subst("$LINK"),
    "mcu": board.get("build.mcu"),
    "pio_platform_dir": platform.get_dir(),
    "pio_framework_dir": framework_dir,
}

with open(os.path.join(env.subst("$PROJECT_DIR"), "%s"), "w") as f:
    json.dump(dump, f, indent=2)
''' % SCONS_DUMP_FILE


class SconsDumpError(Exception):
    """Raised when the SCons variable dump is missing or malformed."""

    pass


@dataclass(frozen=True)
class SconsVariables:
    """Build variables resolved by PlatformIO's SCons environment."""

    project_dir: Path
    release_build: bool
    path: str
    incflags: str
    defflags: str
    libflags: str
    libdirflags: str
    linkflags: str
    link: str
    mcu: str
    pio_platform_dir: Path
    pio_framework_dir: Path

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SconsVariables":
        return cls(
            project_dir=Path(data["project_dir"]),
            release_build=bool(data["release_build"]),
            path=data.get("path", ""),
            incflags=data.get("incflags", ""),
            defflags=data.get("defflags", ""),
            libflags=data.get("libflags", ""),
            libdirflags=data.get("libdirflags", ""),
            linkflags=data.get("linkflags", ""),
            link=data.get("link", ""),
            mcu=data.get("mcu") or "",
            pio_platform_dir=Path(data.get("pio_platform_dir") or ""),
            pio_framework_dir=Path(data.get("pio_framework_dir") or ""),
        )

    @classmethod
    def from_dump(cls, project_dir: Path) -> "SconsVariables":
        """Load the dump written by a build of ``project_dir``.

        Raises:
            SconsDumpError: If the dump is missing or malformed
        """
        dump_file = project_dir / SCONS_DUMP_FILE
        try:
            data = json.loads(dump_file.read_text(encoding="utf-8"))
            return cls.from_dict(data)
        except FileNotFoundError as e:
            raise SconsDumpError(
                f"SCons variable dump not found: {dump_file}. "
                + "Was the project built with the dump script enabled?"
            ) from e
        except (ValueError, KeyError, TypeError) as e:
            raise SconsDumpError(f"Malformed SCons variable dump {dump_file}: {e}") from e

    @classmethod
    def from_piofirst(cls, project_dir: Optional[Path]) -> Optional["SconsVariables"]:
        """Load the dump of a PIO-first build, if one is active.

        Args:
            project_dir: $CARGO_PIO_BUILD_PROJECT_DIR, or None outside PIO-first builds
        """
        if project_dir is None:
            return None
        return cls.from_dump(project_dir)

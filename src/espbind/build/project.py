"""
Generated PlatformIO project.

The ESP-IDF SDK is built by generating a throwaway PlatformIO project under
OUT_DIR and letting PlatformIO build it:

    <OUT_DIR>/<project>/
    ├── platformio.ini              # [env:debug] and [env:release]
    ├── sdkconfig.<profile>         # Primary sdkconfig (if any)
    ├── sdkconfig.defaults*         # Default overlays, in order
    ├── __pio_scons_dump.py         # Writes __pio_scons_dump.json
    └── src/
        └── main.c                  # Empty app_main() entry point

Later files with the same destination overwrite earlier ones.
"""

import shutil
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable, List, Optional, Sequence, Tuple

from ..config.build_env import GLOB_PREFIX, ConfigurationError
from .scons_vars import SCONS_DUMP_SCRIPT

if TYPE_CHECKING:
    from ..packages.resolver import Resolution

SCONS_DUMP_SCRIPT_FILE = "__pio_scons_dump.py"

C_ENTRY_POINT = """\
void app_main() {
}
"""


class ProjectBuilder:
    """Builds the description of a PlatformIO project and writes it to disk.

    Usage:
        project_dir = (
            ProjectBuilder(out_dir / "esp-homekit-sdk")
            .enable_scons_dump()
            .enable_c_entry_points()
            .options(env.pio_options)
            .files(overlays)
            .generate(resolution)
        )
    """

    def __init__(self, project_dir: Path):
        self.project_dir = project_dir
        self._scons_dump = False
        self._c_entry_points = False
        self._options: List[Tuple[str, str]] = []
        self._files: List[Tuple[Path, Path]] = []
        self._sdkconfig_defaults: List[str] = []

    def enable_scons_dump(self) -> "ProjectBuilder":
        self._scons_dump = True
        return self

    def enable_c_entry_points(self) -> "ProjectBuilder":
        self._c_entry_points = True
        return self

    def options(self, options: Iterable[Tuple[str, str]]) -> "ProjectBuilder":
        """Add ``key = value`` lines to the common [env] section."""
        self._options.extend(options)
        return self

    def files(self, files: Iterable[Tuple[Path, Path]]) -> "ProjectBuilder":
        """Add (source, destination relative to the project) pairs."""
        self._files.extend((Path(src), Path(dest)) for src, dest in files)
        return self

    def sdkconfig_defaults(self, files: Iterable[Tuple[Path, Path]]) -> "ProjectBuilder":
        """Add sdkconfig default overlays.

        The files are copied like ``files()`` and also listed, in order, in
        SDKCONFIG_DEFAULTS so ESP-IDF applies them first to last.
        """
        files = list(files)
        self.files(files)
        self._sdkconfig_defaults.extend(Path(dest).as_posix() for _, dest in files)
        return self

    def render_ini(self, resolution: "Resolution") -> str:
        """Render platformio.ini for a resolution."""
        lines = [
            "[platformio]",
            "default_envs = debug",
            "",
            "[env]",
            f"platform = {resolution.platform}",
            f"board = {resolution.board}",
            f"framework = {', '.join(resolution.frameworks)}",
            f"board_build.mcu = {resolution.mcu}",
        ]

        if self._scons_dump:
            lines.append(f"extra_scripts = post:{SCONS_DUMP_SCRIPT_FILE}")

        if self._sdkconfig_defaults:
            defaults = ";".join(self._sdkconfig_defaults)
            lines.append(f'board_build.cmake_extra_args = -DSDKCONFIG_DEFAULTS="{defaults}"')

        for key, value in self._options:
            lines.append(f"{key} = {value}")

        for profile in ("debug", "release"):
            lines.extend(["", f"[env:{profile}]", f"build_type = {profile}"])

        return "\n".join(lines) + "\n"

    def generate(self, resolution: "Resolution") -> Path:
        """Write the project to disk.

        Args:
            resolution: Platform resolution the project targets

        Returns:
            Path to the project directory
        """
        self.project_dir.mkdir(parents=True, exist_ok=True)

        (self.project_dir / "platformio.ini").write_text(
            self.render_ini(resolution), encoding="utf-8"
        )

        if self._scons_dump:
            (self.project_dir / SCONS_DUMP_SCRIPT_FILE).write_text(
                SCONS_DUMP_SCRIPT, encoding="utf-8"
            )

        if self._c_entry_points:
            src_dir = self.project_dir / "src"
            src_dir.mkdir(parents=True, exist_ok=True)
            (src_dir / "main.c").write_text(C_ENTRY_POINT, encoding="utf-8")

        for src, dest in self._files:
            target = self.project_dir / dest
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(src, target)

        return self.project_dir


def tracked_globs(
    base: Optional[Path],
    patterns: Sequence[str],
    tracker: Optional[Callable[[Path], None]] = None,
) -> List[Tuple[Path, Path]]:
    """Expand glob patterns into (source, destination) file pairs.

    Destinations are relative to ``base``; only regular files are returned.

    Args:
        base: Directory the patterns are relative to
        patterns: Glob patterns (e.g. "components/**/*.h")
        tracker: Called with every matched file

    Returns:
        Sorted (source, relative destination) pairs

    Raises:
        ConfigurationError: If patterns are given without a base directory
    """
    if not patterns:
        return []
    if base is None:
        raise ConfigurationError(
            f"Glob patterns given in ${GLOB_PREFIX}_* but ${GLOB_PREFIX}_BASE is not set"
        )

    matched = set()
    for pattern in patterns:
        matched.update(path for path in base.glob(pattern) if path.is_file())

    files = []
    for path in sorted(matched):
        if tracker is not None:
            tracker(path)
        files.append((path, path.relative_to(base)))
    return files

"""PlatformIO Core handle and installer.

PlatformIO is treated as an external tool: it is either found on $PATH or
installed with the official ``get-platformio.py`` installer script, and all
interaction happens through its command line.

Installation Process:
    1. Download get-platformio.py into the install directory
    2. Run it with PLATFORMIO_CORE_DIR pointing at the install directory
    3. Run ``get-platformio.py check core --dump-state <file>``
    4. Read platformio_exe / core_dir / penv_dir from the dumped state
"""

import json
import os
import shutil
import sys
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..build.command_executor import BuildError, CommandExecutor, CommandResult
from .downloader import PackageDownloader

INSTALLER_URL = (
    "https://raw.githubusercontent.com/platformio/platformio-core-installer/"
    "master/get-platformio.py"
)
INSTALLER_SCRIPT = "get-platformio.py"
CORE_DIR_VAR = "PLATFORMIO_CORE_DIR"


@dataclass(frozen=True)
class Pio:
    """Location of a PlatformIO Core installation."""

    platformio_exe: Path
    core_dir: Path
    penv_dir: Optional[Path] = None

    @classmethod
    def try_from_env(cls, environ: Mapping[str, str]) -> Optional["Pio"]:
        """Find PlatformIO on the executable search path.

        Args:
            environ: Variables holding PATH and PLATFORMIO_CORE_DIR

        Returns:
            Pio instance, or None if neither ``platformio`` nor ``pio`` is found
        """
        search_path = environ.get("PATH", os.defpath)

        for name in ("platformio", "pio"):
            exe = shutil.which(name, path=search_path)
            if exe:
                core_dir = environ.get(CORE_DIR_VAR)
                return cls(
                    platformio_exe=Path(exe),
                    core_dir=Path(core_dir) if core_dir else Path.home() / ".platformio",
                )
        return None

    @classmethod
    def from_state(cls, state: Dict[str, Any]) -> "Pio":
        """Build from the JSON state dumped by the installer script.

        Raises:
            KeyError: If the state lacks platformio_exe or core_dir
        """
        penv_dir = state.get("penv_dir")
        return cls(
            platformio_exe=Path(state["platformio_exe"]),
            core_dir=Path(state["core_dir"]),
            penv_dir=Path(penv_dir) if penv_dir else None,
        )

    def env(self) -> Dict[str, str]:
        """Variables every PlatformIO invocation runs with."""
        return {CORE_DIR_VAR: str(self.core_dir)}


class PlatformIO:
    """Runs PlatformIO commands for a given installation."""

    def __init__(self, pio: Pio, executor: CommandExecutor):
        """
        Args:
            pio: PlatformIO installation
            executor: Command executor used for every invocation
        """
        self.pio = pio
        self.executor = executor

    def exec_with_args(self, args: Sequence[str], cwd: Optional[Path] = None) -> CommandResult:
        """Run ``platformio <args>``.

        Raises:
            BuildError: If PlatformIO exits with a non-zero status
        """
        return self.executor.run(
            [str(self.pio.platformio_exe), *args], env=self.pio.env(), cwd=cwd
        )

    def install_global_libs(self) -> CommandResult:
        return self.exec_with_args(["lib", "--global", "install"])

    def install_platform(self, platform: str) -> CommandResult:
        return self.exec_with_args(["platform", "install", platform])

    def build(self, project_dir: Path, release: bool) -> CommandResult:
        """Build the ``release`` or ``debug`` environment of a project."""
        return self.exec_with_args(
            ["run", "-d", str(project_dir), "-e", "release" if release else "debug"]
        )

    def boards(self) -> List[Dict[str, Any]]:
        """List the boards of every installed platform."""
        result = self.exec_with_args(["boards", "--json-output"])
        return json.loads(result.stdout or "[]")


class PlatformIOInstaller:
    """Installs PlatformIO Core with the official installer script."""

    def __init__(
        self,
        executor: CommandExecutor,
        downloader: Optional[PackageDownloader] = None,
        python_exe: Optional[str] = None,
        show_progress: bool = False,
    ):
        """
        Args:
            executor: Command executor used to run the installer
            downloader: Downloader for the installer script
            python_exe: Interpreter running the installer (default: current)
            show_progress: Show download progress
        """
        self.executor = executor
        self.downloader = downloader or PackageDownloader()
        self.python_exe = python_exe or sys.executable
        self.show_progress = show_progress

    def install(self, install_dir: Optional[Path]) -> Pio:
        """Install (or verify) PlatformIO Core.

        The installer is idempotent: an existing installation in
        ``install_dir`` is reused.

        Args:
            install_dir: PlatformIO core directory, or None for the global one

        Returns:
            Pio describing the installation

        Raises:
            DownloadError: If the installer script cannot be downloaded
            BuildError: If the installer fails or dumps no usable state
        """
        if install_dir is not None:
            return self._install_into(install_dir, install_dir)

        with tempfile.TemporaryDirectory() as temp_dir:
            return self._install_into(Path(temp_dir), None)

    def _install_into(self, script_dir: Path, core_dir: Optional[Path]) -> Pio:
        script = script_dir / INSTALLER_SCRIPT
        if not script.exists():
            self.downloader.download(
                INSTALLER_URL, script, show_progress=self.show_progress
            )

        env = {CORE_DIR_VAR: str(core_dir)} if core_dir is not None else None

        self.executor.run([self.python_exe, str(script)], env=env)

        state_file = script_dir / "pio-state.json"
        self.executor.run(
            [
                self.python_exe,
                str(script),
                "check",
                "core",
                "--dump-state",
                str(state_file),
            ],
            env=env,
        )

        try:
            state = json.loads(state_file.read_text(encoding="utf-8"))
            return Pio.from_state(state)
        except (OSError, ValueError, KeyError) as e:
            raise BuildError(
                [self.python_exe, str(script), "check", "core"],
                1,
                stderr=f"Could not read PlatformIO state from {state_file}: {e}",
            ) from e

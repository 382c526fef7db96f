"""Unit tests for the PlatformIO handle and installer."""

import json
from pathlib import Path
from unittest.mock import Mock

import pytest

from espbind.build.command_executor import BuildError, CommandExecutor, CommandResult
from espbind.packages import PackageDownloader, Pio, PlatformIO, PlatformIOInstaller
from espbind.packages.platformio import INSTALLER_SCRIPT, INSTALLER_URL


def ok(stdout=""):
    return CommandResult(cmd=[], returncode=0, stdout=stdout, stderr="")


@pytest.fixture
def executor():
    executor = Mock(spec=CommandExecutor)
    executor.run.return_value = ok()
    return executor


class TestPio:
    """Test cases for Pio."""

    def test_try_from_env_found(self, tmp_path):
        """Test that platformio is located on PATH."""
        exe = tmp_path / "platformio"
        exe.write_text("#!/bin/sh\n")
        exe.chmod(0o755)

        pio = Pio.try_from_env(
            {"PATH": str(tmp_path), "PLATFORMIO_CORE_DIR": str(tmp_path / "core")}
        )

        assert pio.platformio_exe == exe
        assert pio.core_dir == tmp_path / "core"

    def test_try_from_env_missing(self, tmp_path):
        assert Pio.try_from_env({"PATH": str(tmp_path)}) is None

    def test_from_state(self):
        pio = Pio.from_state(
            {"platformio_exe": "/p/bin/pio", "core_dir": "/p", "penv_dir": "/p/penv"}
        )

        assert pio.platformio_exe == Path("/p/bin/pio")
        assert pio.penv_dir == Path("/p/penv")
        assert pio.env() == {"PLATFORMIO_CORE_DIR": str(Path("/p"))}


class TestPlatformIO:
    """Test cases for PlatformIO commands."""

    @pytest.fixture
    def platformio(self, executor):
        return PlatformIO(Pio(Path("/bin/pio"), Path("/core")), executor)

    def test_build_release(self, platformio, executor, tmp_path):
        platformio.build(tmp_path, release=True)

        cmd = executor.run.call_args.args[0]
        assert cmd == [str(Path("/bin/pio")), "run", "-d", str(tmp_path), "-e", "release"]
        assert executor.run.call_args.kwargs["env"] == {
            "PLATFORMIO_CORE_DIR": str(Path("/core"))
        }

    def test_build_debug(self, platformio, executor, tmp_path):
        platformio.build(tmp_path, release=False)

        assert executor.run.call_args.args[0][-1] == "debug"

    def test_install_global_libs(self, platformio, executor):
        platformio.install_global_libs()

        assert executor.run.call_args.args[0][1:] == ["lib", "--global", "install"]

    def test_boards(self, platformio, executor):
        executor.run.return_value = ok(json.dumps([{"id": "esp32dev"}]))

        assert platformio.boards() == [{"id": "esp32dev"}]


class TestPlatformIOInstaller:
    """Test cases for PlatformIOInstaller."""

    def write_state(self, state_dir: Path):
        def run(cmd, env=None, cwd=None):
            if "--dump-state" in cmd:
                Path(cmd[-1]).write_text(
                    json.dumps(
                        {
                            "platformio_exe": str(state_dir / "penv" / "bin" / "platformio"),
                            "core_dir": str(state_dir),
                        }
                    )
                )
            return ok()

        return run

    def test_install_into_directory(self, executor, tmp_path):
        """Test download, install and state dump into a directory."""
        downloader = Mock(spec=PackageDownloader)
        executor.run.side_effect = self.write_state(tmp_path)
        installer = PlatformIOInstaller(executor, downloader, python_exe="python3")

        pio = installer.install(tmp_path)

        downloader.download.assert_called_once_with(
            INSTALLER_URL, tmp_path / INSTALLER_SCRIPT, show_progress=False
        )
        assert pio.core_dir == tmp_path
        first_cmd = executor.run.call_args_list[0]
        assert first_cmd.args[0] == ["python3", str(tmp_path / INSTALLER_SCRIPT)]
        assert first_cmd.kwargs["env"] == {"PLATFORMIO_CORE_DIR": str(tmp_path)}

    def test_existing_script_not_downloaded(self, executor, tmp_path):
        """Test that a present installer script is reused."""
        (tmp_path / INSTALLER_SCRIPT).write_text("# installer")
        downloader = Mock(spec=PackageDownloader)
        executor.run.side_effect = self.write_state(tmp_path)

        PlatformIOInstaller(executor, downloader, python_exe="python3").install(tmp_path)

        downloader.download.assert_not_called()

    def test_missing_state_is_build_error(self, executor, tmp_path):
        """Test that an installer without state output fails."""
        downloader = Mock(spec=PackageDownloader)
        installer = PlatformIOInstaller(executor, downloader, python_exe="python3")

        with pytest.raises(BuildError, match="Could not read PlatformIO state"):
            installer.install(tmp_path)

    def test_installer_failure_propagates(self, executor, tmp_path):
        """Test that installer failures surface verbatim."""
        executor.run.side_effect = BuildError(["python3"], 2, stderr="no network")
        installer = PlatformIOInstaller(
            executor, Mock(spec=PackageDownloader), python_exe="python3"
        )

        with pytest.raises(BuildError) as exc_info:
            installer.install(tmp_path)

        assert exc_info.value.returncode == 2
        assert exc_info.value.stderr == "no network"

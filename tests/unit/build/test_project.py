"""Unit tests for PlatformIO project generation."""

from pathlib import Path

import pytest

from espbind.build import ProjectBuilder, SconsDumpError, SconsVariables, tracked_globs
from espbind.build.scons_vars import SCONS_DUMP_FILE
from espbind.config import ConfigurationError
from espbind.packages import Resolution


@pytest.fixture
def resolution():
    return Resolution(
        platform="espressif32",
        frameworks=("espidf",),
        board="esp32-c3-devkitm-1",
        mcu="esp32c3",
        target="riscv32imc-esp-espidf",
        framework_dir=Path("/core/packages/framework-espidf"),
    )


class TestProjectBuilder:
    """Test cases for ProjectBuilder."""

    def test_render_ini(self, resolution, tmp_path):
        """Test the generated platformio.ini."""
        ini = (
            ProjectBuilder(tmp_path)
            .enable_scons_dump()
            .options([("board_build.partitions", "partitions.csv")])
            .render_ini(resolution)
        )

        assert ini.startswith("[platformio]\ndefault_envs = debug\n")
        assert "platform = espressif32\n" in ini
        assert "board = esp32-c3-devkitm-1\n" in ini
        assert "framework = espidf\n" in ini
        assert "board_build.mcu = esp32c3\n" in ini
        assert "extra_scripts = post:__pio_scons_dump.py\n" in ini
        assert "board_build.partitions = partitions.csv\n" in ini
        assert "[env:debug]\nbuild_type = debug\n" in ini
        assert "[env:release]\nbuild_type = release\n" in ini

    def test_generate(self, resolution, tmp_path):
        """Test that every requested file is written."""
        overlay = tmp_path / "src" / "sdkconfig.release"
        overlay.parent.mkdir()
        overlay.write_text("CONFIG_A=y\n")
        project_dir = tmp_path / "out" / "esp-homekit-sdk"

        result = (
            ProjectBuilder(project_dir)
            .enable_scons_dump()
            .enable_c_entry_points()
            .files([(overlay, Path("sdkconfig.release"))])
            .generate(resolution)
        )

        assert result == project_dir
        assert (project_dir / "platformio.ini").is_file()
        assert (project_dir / "__pio_scons_dump.py").read_text().count(SCONS_DUMP_FILE) == 1
        assert "app_main" in (project_dir / "src" / "main.c").read_text()
        assert (project_dir / "sdkconfig.release").read_text() == "CONFIG_A=y\n"

    def test_sdkconfig_defaults_order(self, resolution, tmp_path):
        """Test that default overlays are listed in order."""
        for name in ("sdkconfig.defaults", "sdkconfig.defaults.esp32c3"):
            (tmp_path / name).write_text(f"# {name}\n")

        builder = ProjectBuilder(tmp_path / "proj").sdkconfig_defaults(
            [
                (tmp_path / "sdkconfig.defaults", Path("sdkconfig.defaults")),
                (tmp_path / "sdkconfig.defaults.esp32c3", Path("sdkconfig.defaults.esp32c3")),
            ]
        )
        builder.generate(resolution)

        ini = (tmp_path / "proj" / "platformio.ini").read_text()
        assert (
            'board_build.cmake_extra_args = '
            '-DSDKCONFIG_DEFAULTS="sdkconfig.defaults;sdkconfig.defaults.esp32c3"'
        ) in ini
        assert (tmp_path / "proj" / "sdkconfig.defaults.esp32c3").is_file()

    def test_later_file_wins(self, resolution, tmp_path):
        """Test that a later file with the same destination overwrites."""
        first = tmp_path / "first"
        second = tmp_path / "second"
        first.write_text("first")
        second.write_text("second")

        ProjectBuilder(tmp_path / "proj").files(
            [(first, Path("x")), (second, Path("x"))]
        ).generate(resolution)

        assert (tmp_path / "proj" / "x").read_text() == "second"

    def test_no_scons_dump(self, resolution, tmp_path):
        ProjectBuilder(tmp_path).generate(resolution)

        assert not (tmp_path / "__pio_scons_dump.py").exists()
        assert not (tmp_path / "src" / "main.c").exists()


class TestTrackedGlobs:
    """Test cases for tracked_globs."""

    def test_expands_files_only(self, tmp_path):
        (tmp_path / "components" / "hap").mkdir(parents=True)
        (tmp_path / "components" / "hap" / "hap.h").write_text("")
        (tmp_path / "components" / "hap" / "dir.h").mkdir()
        tracked = []

        files = tracked_globs(tmp_path, ["components/**/*.h"], tracked.append)

        assert files == [
            (tmp_path / "components" / "hap" / "hap.h", Path("components/hap/hap.h"))
        ]
        assert tracked == [tmp_path / "components" / "hap" / "hap.h"]

    def test_no_patterns(self):
        assert tracked_globs(None, []) == []

    def test_patterns_without_base(self):
        with pytest.raises(ConfigurationError, match="ESP_IDF_SYS_GLOB_BASE"):
            tracked_globs(None, ["*.h"])


class TestSconsVariables:
    """Test cases for SconsVariables."""

    def test_from_dump(self, tmp_path):
        (tmp_path / SCONS_DUMP_FILE).write_text(
            '{"project_dir": "/proj", "release_build": true, "path": "/bin",'
            ' "incflags": "-I/a", "libflags": "-lx", "link": "gcc", "mcu": "esp32",'
            ' "pio_platform_dir": "/plat", "pio_framework_dir": "/fw"}'
        )

        scons_vars = SconsVariables.from_dump(tmp_path)

        assert scons_vars.project_dir == Path("/proj")
        assert scons_vars.release_build is True
        assert scons_vars.incflags == "-I/a"
        assert scons_vars.defflags == ""
        assert scons_vars.pio_framework_dir == Path("/fw")

    def test_missing_dump(self, tmp_path):
        with pytest.raises(SconsDumpError, match="not found"):
            SconsVariables.from_dump(tmp_path)

    def test_malformed_dump(self, tmp_path):
        (tmp_path / SCONS_DUMP_FILE).write_text("{not json")

        with pytest.raises(SconsDumpError, match="Malformed"):
            SconsVariables.from_dump(tmp_path)

    def test_from_piofirst_inactive(self):
        assert SconsVariables.from_piofirst(None) is None

"""Unit tests for linker and C include arguments."""

import io
from pathlib import Path

import pytest

from espbind.build import CargoChannel, CInclArgs, LinkArgs, SconsVariables


@pytest.fixture
def scons_vars():
    return SconsVariables(
        project_dir=Path("/proj"),
        release_build=False,
        path="/tools/bin",
        incflags='-I/sdk/include "-I/with space/include"',
        defflags="-DESP_PLATFORM",
        libflags="-lhap -lmdns",
        libdirflags="-L/proj/.pio/build/debug",
        linkflags="-nostdlib -Wl,--gc-sections",
        link="riscv32-esp-elf-gcc",
        mcu="esp32c3",
        pio_platform_dir=Path("/core/platforms/espressif32"),
        pio_framework_dir=Path("/core/packages/framework-espidf"),
    )


class TestLinkArgs:
    """Test cases for LinkArgs."""

    def test_from_scons_vars(self, scons_vars):
        """Test argument order and library grouping."""
        link_args = LinkArgs.from_scons_vars(scons_vars)

        assert link_args.args == [
            "-nostdlib",
            "-Wl,--gc-sections",
            "-L/proj/.pio/build/debug",
            "-Wl,--start-group",
            "-lhap",
            "-lmdns",
            "-Wl,--end-group",
        ]
        assert link_args.all_args()[:2] == [
            "--ldproxy-linker=riscv32-esp-elf-gcc",
            f"--ldproxy-cwd={Path('/proj')}",
        ]

    def test_output(self, scons_vars):
        stream = io.StringIO()
        LinkArgs.from_scons_vars(scons_vars).output(CargoChannel(stream))

        lines = stream.getvalue().splitlines()
        assert lines[0] == "cargo:rustc-link-arg=--ldproxy-linker=riscv32-esp-elf-gcc"
        assert lines[-1] == "cargo:rustc-link-arg=-Wl,--end-group"

    def test_propagate(self, scons_vars):
        stream = io.StringIO()
        LinkArgs.from_scons_vars(scons_vars).propagate(CargoChannel(stream))

        assert stream.getvalue().startswith("cargo:EMBUILD_LINK_ARGS=--ldproxy-linker=")


class TestCInclArgs:
    """Test cases for CInclArgs."""

    def test_propagate(self, scons_vars):
        stream = io.StringIO()
        CInclArgs.from_scons_vars(scons_vars).propagate(CargoChannel(stream))

        assert stream.getvalue() == (
            'cargo:EMBUILD_C_INCL_ARGS=-I/sdk/include "-I/with space/include"\n'
        )

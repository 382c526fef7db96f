"""
Rust binding generation with bindgen.

bindgen is run as an external tool against the binding header, with the
SDK include directories and the target's clang flags.
"""

from pathlib import Path
from typing import List, Sequence

from .command_executor import CommandExecutor, CommandResult

CTYPES_PREFIX = "c_types"

# long double has no Rust equivalent
BLOCKLISTED_FUNCTIONS = ("strtold", "_strtold_r")

RISCV_MCUS = ("esp32c2", "esp32c3", "esp32c6", "esp32h2")

# Component includes of the HomeKit SDK that are not under a components/*/include dir
EXTRA_COMPONENT_INCLUDES = (
    Path("common") / "app_wifi",
    Path("common") / "app_hap_setup_payload",
    Path("common") / "qrcode" / "include",
)


def clang_target(mcu: str) -> str:
    """Clang target architecture of an MCU."""
    return "riscv32" if mcu.lower() in RISCV_MCUS else "xtensa"


def extra_include_args(sdk_dir: Path) -> List[str]:
    """``-I`` flags for the SDK includes outside the component tree."""
    return [f"-I{sdk_dir / include}" for include in EXTRA_COMPONENT_INCLUDES]


class BindgenRunner:
    """Runs bindgen for a header."""

    def __init__(self, executor: CommandExecutor, bindgen_exe: str):
        """
        Args:
            executor: Command executor
            bindgen_exe: Path or name of the bindgen executable
        """
        self.executor = executor
        self.bindgen_exe = bindgen_exe

    def command(self, header: Path, output: Path, clang_args: Sequence[str]) -> List[str]:
        cmd = [
            self.bindgen_exe,
            str(header),
            "--output",
            str(output),
            "--use-core",
            "--ctypes-prefix",
            CTYPES_PREFIX,
        ]
        for function in BLOCKLISTED_FUNCTIONS:
            cmd.extend(["--blocklist-function", function])
        cmd.append("--")
        cmd.extend(clang_args)
        return cmd

    def run(self, header: Path, output: Path, clang_args: Sequence[str]) -> CommandResult:
        """Generate ``output`` from ``header``.

        Raises:
            BuildError: If bindgen fails
        """
        output.parent.mkdir(parents=True, exist_ok=True)
        return self.executor.run(self.command(header, output, clang_args))

"""
Platform resolution for ESP-IDF builds.

Maps a Rust target triple (and an optional MCU override) to a concrete MCU,
a PlatformIO board and the SDK framework package directory.

Supported targets:
    xtensa-esp32-espidf      esp32
    xtensa-esp32s2-espidf    esp32s2
    xtensa-esp32s3-espidf    esp32s3
    riscv32imc-esp-espidf    esp32c3, esp32c2
    riscv32imac-esp-espidf   esp32c6, esp32h2
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .platformio import PlatformIO

# First MCU of each list is used when no override is given
TARGET_MCUS: Dict[str, List[str]] = {
    "xtensa-esp32-espidf": ["esp32"],
    "xtensa-esp32s2-espidf": ["esp32s2"],
    "xtensa-esp32s3-espidf": ["esp32s3"],
    "riscv32imc-esp-espidf": ["esp32c3", "esp32c2"],
    "riscv32imac-esp-espidf": ["esp32c6", "esp32h2"],
}

DEFAULT_BOARDS: Dict[str, str] = {
    "esp32": "esp32dev",
    "esp32s2": "esp32-s2-kaluga-1",
    "esp32s3": "esp32-s3-devkitc-1",
    "esp32c2": "esp32-c2-devkitm-1",
    "esp32c3": "esp32-c3-devkitm-1",
    "esp32c6": "esp32-c6-devkitc-1",
    "esp32h2": "esp32-h2-devkitm-1",
}


class ResolutionError(Exception):
    """Raised when a platform/framework/target combination cannot be satisfied."""

    pass


@dataclass(frozen=True)
class ResolutionParams:
    """Inputs of a platform resolution."""

    platform: Optional[str]
    frameworks: Tuple[str, ...]
    mcu: Optional[str]
    target: str


@dataclass(frozen=True)
class Resolution:
    """A concrete platform/board/MCU selection."""

    platform: str
    frameworks: Tuple[str, ...]
    board: str
    mcu: str
    target: str
    framework_dir: Path


def resolve_mcu(target: str, mcu: Optional[str] = None) -> str:
    """Pick the MCU for a target triple.

    Args:
        target: Rust target triple
        mcu: Optional MCU override

    Returns:
        Lower-case MCU identifier

    Raises:
        ResolutionError: If the target is unknown or the MCU is not supported by it
    """
    mcus = TARGET_MCUS.get(target)
    if mcus is None:
        raise ResolutionError(
            f"Unsupported target '{target}'. "
            + f"Supported targets: {', '.join(sorted(TARGET_MCUS))}"
        )

    if mcu is None:
        return mcus[0]

    mcu = mcu.lower()
    if mcu not in mcus:
        raise ResolutionError(
            f"MCU '{mcu}' is not supported by target '{target}'. "
            + f"Supported MCUs: {', '.join(mcus)}"
        )
    return mcu


class Resolver:
    """Resolves ResolutionParams against the installed PlatformIO boards."""

    def __init__(self, platformio: PlatformIO):
        self.platformio = platformio

    def resolve(self, params: ResolutionParams, install: bool = True) -> Resolution:
        """Resolve the parameters into a Resolution.

        Args:
            params: Resolution parameters
            install: Install the platform when it has no boards yet

        Returns:
            Resolution

        Raises:
            ResolutionError: If no board satisfies the parameters
            BuildError: If a PlatformIO command fails
        """
        if not params.platform:
            raise ResolutionError("No platform specified")
        if not params.frameworks:
            raise ResolutionError("No framework specified")

        mcu = resolve_mcu(params.target, params.mcu)

        boards = self._matching_boards(params, mcu)
        if not boards and install:
            logging.info(f"No boards for platform {params.platform}, installing it")
            self.platformio.install_platform(params.platform)
            boards = self._matching_boards(params, mcu)

        if not boards:
            raise ResolutionError(
                f"No board found for platform '{params.platform}', "
                + f"frameworks {list(params.frameworks)} and MCU '{mcu}'"
            )

        board_ids = [board["id"] for board in boards]
        default_board = DEFAULT_BOARDS.get(mcu)
        board = default_board if default_board in board_ids else sorted(board_ids)[0]

        framework_dir = (
            self.platformio.pio.core_dir / "packages" / f"framework-{params.frameworks[0]}"
        )

        return Resolution(
            platform=params.platform,
            frameworks=tuple(params.frameworks),
            board=board,
            mcu=mcu,
            target=params.target,
            framework_dir=framework_dir,
        )

    def _matching_boards(self, params: ResolutionParams, mcu: str) -> List[Dict[str, Any]]:
        return [
            board
            for board in self.platformio.boards()
            if board.get("platform") == params.platform
            and str(board.get("mcu", "")).lower() == mcu
            and set(params.frameworks) <= set(board.get("frameworks", []))
        ]

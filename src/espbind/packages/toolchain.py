"""PlatformIO toolchain acquisition.

Decides whether the PlatformIO instance found on $PATH is reused or a fresh
one is installed at the resolved install location:

    found  allowed  required  action
    yes    yes      -         reuse the instance from the environment
    yes    no       -         warn, install at the location
    no     -        yes       fail with ToolchainNotFound
    no     -        no        install at the location

``allowed`` is true when the install directive was defaulted or is
``fromenv``; ``required`` is true only for ``fromenv``.
"""

import logging
from typing import Callable, Optional

from ..build.cargo import CargoChannel
from ..config.build_env import ESP_IDF_TOOLS_INSTALL_DIR_VAR
from ..config.install_dir import InstallDir
from .platformio import Pio, PlatformIOInstaller


class ToolchainNotFound(Exception):
    """Raised when a required tool is not available in the environment."""

    pass


class ToolchainAcquirer:
    """Reuses or installs PlatformIO according to the install location."""

    def __init__(
        self,
        installer: PlatformIOInstaller,
        channel: CargoChannel,
        finder: Callable[[], Optional[Pio]],
        show_progress: bool = False,
    ):
        """
        Args:
            installer: Installs PlatformIO when needed
            channel: Cargo channel for user-facing warnings
            finder: Locates PlatformIO in the environment
            show_progress: Print progress messages
        """
        self.installer = installer
        self.channel = channel
        self.finder = finder
        self.show_progress = show_progress

    def acquire(
        self, location: InstallDir, allow_from_env: bool, require_from_env: bool
    ) -> Pio:
        """Return a usable PlatformIO installation.

        Args:
            location: Resolved install location
            allow_from_env: An instance from the environment may be reused
            require_from_env: An instance from the environment must be used

        Returns:
            Pio installation

        Raises:
            ToolchainNotFound: If the environment was mandated but has no PlatformIO
            BuildError: If installation fails
        """
        maybe_from_env = require_from_env or allow_from_env
        pio = self.finder()

        if pio is not None and maybe_from_env:
            if self.show_progress:
                print(f"Using platformio from environment at '{pio.platformio_exe}'")
            logging.info(f"Using platformio from environment at {pio.platformio_exe}")
            return pio

        if pio is not None:
            self.channel.warning(
                "Ignoring platformio in environment: "
                + f"${ESP_IDF_TOOLS_INSTALL_DIR_VAR} != {InstallDir.from_env()}"
            )
            return self.install(location)

        if require_from_env:
            raise ToolchainNotFound(
                "platformio not found in environment ($PATH) but required by "
                + f"${ESP_IDF_TOOLS_INSTALL_DIR_VAR} == {location}"
            )

        return self.install(location)

    def install(self, location: InstallDir) -> Pio:
        """Install PlatformIO at ``location``, creating the directory first."""
        install_path = location.path
        if install_path is not None:
            install_path.mkdir(parents=True, exist_ok=True)

        if self.show_progress:
            print(f"Installing platformio ({location})...")
        logging.info(f"Installing platformio at {location}")

        return self.installer.install(install_path)

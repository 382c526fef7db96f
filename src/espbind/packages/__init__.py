"""Toolchain and platform management for espbind.

This module handles locating or installing PlatformIO and resolving the
platform, board and MCU a build targets.
"""

from .downloader import ChecksumError, DownloadError, PackageDownloader
from .platformio import Pio, PlatformIO, PlatformIOInstaller
from .resolver import Resolution, ResolutionError, ResolutionParams, Resolver
from .toolchain import ToolchainAcquirer, ToolchainNotFound

__all__ = [
    "PackageDownloader",
    "DownloadError",
    "ChecksumError",
    "Pio",
    "PlatformIO",
    "PlatformIOInstaller",
    "Resolution",
    "ResolutionError",
    "ResolutionParams",
    "Resolver",
    "ToolchainAcquirer",
    "ToolchainNotFound",
]

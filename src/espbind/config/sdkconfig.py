"""
Profile and chip specific sdkconfig overlays.

Every sdkconfig path may have variants specialized for the build profile
and/or the target chip. For a base file ``sdkconfig.defaults``, profile
``release`` and chip ``esp32`` the candidates are, most specific first:

    sdkconfig.defaults.release.esp32
    sdkconfig.defaults.esp32
    sdkconfig.defaults.release
    sdkconfig.defaults

The primary sdkconfig takes only the most specific existing candidate.
The defaults list keeps every existing candidate, least specific first, so
that the most specific layer is applied last and wins.
"""

from pathlib import Path
from typing import Callable, List, Optional, Tuple

from .build_env import ConfigurationError

OverlayFile = Tuple[Path, Path]


def list_specific_sdkconfigs(path: Path, profile: str, chip: str) -> List[Path]:
    """Return the existing specialized variants of ``path``.

    Args:
        path: Base file path
        profile: Build profile (e.g. "debug", "release")
        chip: Target chip (e.g. "esp32c3")

    Returns:
        Existing files, most specific first
    """
    filename = path.name
    if not filename:
        return []

    profile_specific = f"{filename}.{profile}"
    candidates = [
        f"{profile_specific}.{chip}",
        f"{filename}.{chip}",
        profile_specific,
        filename,
    ]

    return [
        path.with_name(candidate)
        for candidate in candidates
        if path.with_name(candidate).is_file()
    ]


class SdkconfigResolver:
    """Resolves the primary sdkconfig and the ordered defaults overlays.

    Every file that contributes to the build is passed to ``tracker`` so
    the enclosing build reruns when any layer changes.

    Usage:
        resolver = SdkconfigResolver(workspace, "release", "esp32", channel.track_file)
        primary = resolver.resolve_primary("sdkconfig")
        defaults = resolver.resolve_defaults("sdkconfig.defaults;boards/sdkconfig.s3")
    """

    def __init__(
        self,
        workspace_dir: Optional[Path],
        profile: str,
        chip: str,
        tracker: Optional[Callable[[Path], None]] = None,
    ):
        """
        Args:
            workspace_dir: Root relative paths are resolved against
            profile: Build profile
            chip: Target chip
            tracker: Called with each contributing file
        """
        self.workspace_dir = workspace_dir
        self.profile = profile
        self.chip = chip
        self.tracker = tracker

    def _abspath(self, value: str) -> Path:
        path = Path(value)
        if path.is_absolute():
            return path
        if self.workspace_dir is None:
            raise ConfigurationError(
                f"Cannot resolve relative sdkconfig path '{value}': "
                + "no workspace directory found"
            )
        return self.workspace_dir / path

    def _track(self, path: Path) -> None:
        if self.tracker is not None:
            self.tracker(path)

    def resolve_primary(self, file: str) -> Optional[OverlayFile]:
        """Find the most specific variant of the primary sdkconfig.

        Returns:
            (source path, "sdkconfig.<profile>") or None if nothing exists
        """
        path = self._abspath(file)
        candidates = list_specific_sdkconfigs(path, self.profile, self.chip)
        if not candidates:
            return None

        source = candidates[0]
        self._track(source)
        return source, Path(f"sdkconfig.{self.profile}")

    def resolve_defaults(self, directive: str) -> List[OverlayFile]:
        """Expand a semicolon-separated defaults list.

        Each listed path is expanded and reversed (least specific first),
        and the expansions are concatenated in list order.

        Returns:
            Ordered (source path, file name) pairs
        """
        overlays = []
        for entry in directive.split(";"):
            if not entry:
                continue

            path = self._abspath(entry)
            for source in reversed(
                list_specific_sdkconfigs(path, self.profile, self.chip)
            ):
                self._track(source)
                overlays.append((source, Path(source.name)))

        return overlays

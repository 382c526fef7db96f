"""Include and linker search path discovery.

Walks an SDK component tree and collects every directory named ``include``
(compiler search paths) and every directory named ``ld`` (linker search
paths). Entries that cannot be read are skipped with a logged DiscoveryWarning.

Results are sorted; the underlying walk order depends on the filesystem.
"""

import logging
import os
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

INCLUDE_DIR_NAME = "include"
LIB_DIR_NAME = "ld"


class DiscoveryWarning(Warning):
    """An entry could not be read during search path discovery."""

    pass


@dataclass
class SearchPaths:
    """Discovered compiler and linker search directories."""

    include_dirs: List[Path] = field(default_factory=list)
    lib_dirs: List[Path] = field(default_factory=list)

    def clang_args(self) -> List[str]:
        """Return ``-I<dir>`` flags followed by ``-L<dir>`` flags."""
        return [f"-I{path}" for path in self.include_dirs] + [
            f"-L{path}" for path in self.lib_dirs
        ]


def discover_search_paths(root_dir: Path) -> SearchPaths:
    """Collect ``include`` and ``ld`` directories under ``root_dir``.

    Symlinked directories are reported but not descended into. The root
    itself counts if it carries one of the names.

    Args:
        root_dir: Directory to walk

    Returns:
        SearchPaths with sorted include and lib directories
    """
    include_dirs = []
    lib_dirs = []

    def on_error(error: OSError) -> None:
        message = f"Skipping {error.filename}: {error.strerror}"
        logging.warning(message)
        warnings.warn(message, DiscoveryWarning)

    def classify(path: Path) -> None:
        if path.name == INCLUDE_DIR_NAME:
            include_dirs.append(path)
        elif path.name == LIB_DIR_NAME:
            lib_dirs.append(path)

    root_dir = Path(root_dir)
    if root_dir.is_dir():
        classify(root_dir)

    for dirpath, dirnames, _filenames in os.walk(root_dir, onerror=on_error):
        for dirname in dirnames:
            classify(Path(dirpath) / dirname)

    return SearchPaths(include_dirs=sorted(include_dirs), lib_dirs=sorted(lib_dirs))

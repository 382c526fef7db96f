"""Linker and C include arguments derived from the SCons dump."""

import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from .cargo import CargoChannel
from .scons_vars import SconsVariables

LINK_ARGS_METADATA = "EMBUILD_LINK_ARGS"
C_INCL_ARGS_METADATA = "EMBUILD_C_INCL_ARGS"


@dataclass
class LinkArgs:
    """Arguments handed to the linker proxy."""

    linker: str
    cwd: Path
    args: List[str] = field(default_factory=list)

    @classmethod
    def from_scons_vars(cls, scons_vars: SconsVariables) -> "LinkArgs":
        args = shlex.split(scons_vars.linkflags)
        args.extend(shlex.split(scons_vars.libdirflags))
        args.append("-Wl,--start-group")
        args.extend(shlex.split(scons_vars.libflags))
        args.append("-Wl,--end-group")

        return cls(linker=scons_vars.link, cwd=scons_vars.project_dir, args=args)

    def all_args(self) -> List[str]:
        return [
            f"--ldproxy-linker={self.linker}",
            f"--ldproxy-cwd={self.cwd}",
            *self.args,
        ]

    def output(self, channel: CargoChannel) -> None:
        """Pass the arguments to the linker of the current crate."""
        for arg in self.all_args():
            channel.rustc_link_arg(arg)

    def propagate(self, channel: CargoChannel) -> None:
        """Publish the arguments to dependent crates."""
        channel.set_metadata(LINK_ARGS_METADATA, shlex.join(self.all_args()))


@dataclass
class CInclArgs:
    """C compiler include arguments of the SDK build."""

    args: str

    @classmethod
    def from_scons_vars(cls, scons_vars: SconsVariables) -> "CInclArgs":
        return cls(args=scons_vars.incflags)

    def propagate(self, channel: CargoChannel) -> None:
        channel.set_metadata(C_INCL_ARGS_METADATA, self.args)

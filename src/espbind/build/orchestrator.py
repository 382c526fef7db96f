"""
Bindings build orchestration.

This module wires the whole pipeline together, from the build environment
snapshot to the generated Rust bindings and the Cargo directives:
- Install location and PlatformIO acquisition
- Platform resolution and sdkconfig overlays
- Generation and build of the SDK PlatformIO project
- cfg, include and linker argument derivation
- bindgen invocation

In a PIO-first build (PlatformIO drives Cargo) the SDK is already built; only
the bindings are generated, from the dump of the outer project.
"""

import os
import shlex
import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from ..config.build_env import TRACKED_ENV_VARS, BuildEnvironment
from ..config.install_dir import InstallDir
from ..config.sdkconfig import SdkconfigResolver
from ..packages.platformio import Pio, PlatformIO, PlatformIOInstaller
from ..packages.resolver import (
    Resolution,
    ResolutionError,
    ResolutionParams,
    Resolver,
    resolve_mcu,
)
from ..packages.toolchain import ToolchainAcquirer, ToolchainNotFound
from .bindgen import BindgenRunner, clang_target, extra_include_args
from .cargo import CargoChannel
from .cfg_args import CfgArgs
from .command_executor import CommandExecutor
from .include_discovery import SearchPaths, discover_search_paths
from .link_args import CInclArgs, LinkArgs
from .project import ProjectBuilder, tracked_globs
from .scons_vars import SconsVariables

PLATFORM = "espressif32"
FRAMEWORKS = ("espidf",)
DEFAULT_INSTALL_DIR = "workspace"
BUILDER_NAME = "platformio"
BINDINGS_FILE = "bindings.rs"

ENV_PATH_METADATA = "EMBUILD_ENV_PATH"
ESP_IDF_PATH_METADATA = "EMBUILD_ESP_IDF_PATH"
IDF_TARGET_CFG = "esp_idf_config_idf_target"


@dataclass
class BindingsBuildResult:
    """Result of a bindings build."""

    bindings_path: Path
    mcu: str
    scons_vars: SconsVariables
    cfg_args: CfgArgs
    search_paths: SearchPaths
    link_args: Optional[LinkArgs] = None
    piofirst: bool = False
    build_time: float = 0.0
    clang_args: List[str] = field(default_factory=list)


class BindingsOrchestrator:
    """
    Orchestrates the complete bindings build.

    Phases:
    1. Detect a PIO-first build, or else:
       track inputs, resolve the install location, acquire PlatformIO,
       resolve the platform, resolve sdkconfig overlays, generate and build
       the SDK project, load the SCons dump, derive linker arguments
    2. Translate the generated sdkconfig into cfg flags
    3. Discover SDK include and linker directories
    4. Run bindgen
    5. Emit cfg, environment, include and linker directives

    Example usage:
        env = BuildEnvironment.from_env(os.environ)
        result = BindingsOrchestrator(env, CargoChannel()).build()
        print(f"Bindings: {result.bindings_path}")
    """

    def __init__(
        self,
        env: BuildEnvironment,
        channel: CargoChannel,
        executor: Optional[CommandExecutor] = None,
        installer: Optional[PlatformIOInstaller] = None,
        acquirer: Optional[ToolchainAcquirer] = None,
        verbose: bool = False,
    ):
        """
        Initialize bindings orchestrator.

        Args:
            env: Build environment snapshot
            channel: Cargo output channel
            executor: Command executor for every subprocess
            installer: PlatformIO installer (used when no acquirer is given)
            acquirer: PlatformIO acquisition policy
            verbose: Enable verbose output
        """
        self.env = env
        self.channel = channel
        self.verbose = verbose
        self.executor = executor or CommandExecutor(show_progress=verbose)
        self.installer = installer or PlatformIOInstaller(
            self.executor, show_progress=verbose
        )
        self.acquirer = acquirer or ToolchainAcquirer(
            self.installer,
            channel,
            finder=lambda: Pio.try_from_env(env.tool_environ()),
            show_progress=verbose,
        )

    def build(self) -> BindingsBuildResult:
        """
        Execute the bindings build.

        Returns:
            BindingsBuildResult

        Raises:
            ConfigurationError: If a directive or option is malformed
            ToolchainNotFound: If PlatformIO or bindgen is required but missing
            ResolutionError: If the target cannot be resolved
            BuildError: If a subprocess fails
            DownloadError: If the PlatformIO installer cannot be downloaded
            SconsDumpError: If the SCons variable dump is missing or malformed
        """
        start_time = time.time()

        scons_vars = SconsVariables.from_piofirst(self.env.piofirst_project_dir)
        piofirst = scons_vars is not None
        link_args = None

        if piofirst:
            self.channel.info("PIO->Cargo build detected: generating bindings only")
        else:
            scons_vars = self._build_sdk()
            link_args = LinkArgs.from_scons_vars(scons_vars)

        if self.verbose:
            print("[7/9] Reading sdkconfig...")

        sdkconfig = scons_vars.project_dir / (
            "sdkconfig.release" if scons_vars.release_build else "sdkconfig.debug"
        )
        cfg_args = CfgArgs.from_sdkconfig(sdkconfig)

        self.channel.track_file(self.env.header)

        if self.verbose:
            print("[8/9] Discovering SDK search paths...")

        sdk_dir = self._sdk_dir(scons_vars)
        search_paths = discover_search_paths(sdk_dir / "components")

        mcu = cfg_args.get(IDF_TARGET_CFG)
        if not mcu:
            raise ResolutionError(
                f"Generated sdkconfig {sdkconfig} does not define CONFIG_IDF_TARGET"
            )

        if self.verbose:
            print(f"[9/9] Generating bindings for {mcu}...")

        clang_args = self._clang_args(scons_vars, sdk_dir, search_paths, mcu)
        bindings_path = self.env.out_dir / BINDINGS_FILE
        BindgenRunner(self.executor, self._bindgen_exe()).run(
            self.env.header, bindings_path, clang_args
        )

        cfg_args.propagate(self.channel)
        cfg_args.output(self.channel)

        if link_args is not None:
            self.channel.set_metadata(ENV_PATH_METADATA, scons_vars.path)

        self.channel.set_metadata(ESP_IDF_PATH_METADATA, str(scons_vars.pio_framework_dir))

        CInclArgs.from_scons_vars(scons_vars).propagate(self.channel)

        if link_args is not None:
            link_args.propagate(self.channel)
            link_args.output(self.channel)

        return BindingsBuildResult(
            bindings_path=bindings_path,
            mcu=mcu,
            scons_vars=scons_vars,
            cfg_args=cfg_args,
            search_paths=search_paths,
            link_args=link_args,
            piofirst=piofirst,
            build_time=time.time() - start_time,
            clang_args=clang_args,
        )

    def resolve_install_dir(self) -> Tuple[InstallDir, bool]:
        """Resolve the install location directive.

        Returns:
            Tuple of (InstallDir, whether the default was used)
        """
        return InstallDir.from_env_or(
            self.env.install_dir,
            DEFAULT_INSTALL_DIR,
            BUILDER_NAME,
            self.env.workspace_dir,
            self.env.out_dir,
        )

    def _build_sdk(self) -> SconsVariables:
        env = self.env

        for name in TRACKED_ENV_VARS:
            self.channel.track_env_var(name)

        if self.verbose:
            print("[1/9] Resolving install location...")

        install_dir, is_default = self.resolve_install_dir()

        if self.verbose:
            print(f"      Install location: {install_dir}")
            print("[2/9] Acquiring PlatformIO...")

        pio = self.acquirer.acquire(
            install_dir,
            allow_from_env=is_default,
            require_from_env=install_dir.is_from_env,
        )
        platformio = PlatformIO(pio, self.executor)

        if self.verbose:
            print("[3/9] Resolving platform...")

        resolution = Resolver(platformio).resolve(
            ResolutionParams(
                platform=PLATFORM,
                frameworks=FRAMEWORKS,
                mcu=env.mcu,
                target=env.target,
            )
        )

        if self.verbose:
            print(f"      Board: {resolution.board}")
            print(f"      MCU: {resolution.mcu}")
            print("[4/9] Generating project...")

        project_dir = self._generate_project(resolution)

        if self.verbose:
            print("[5/9] Installing libraries...")

        platformio.install_global_libs()

        if self.verbose:
            print(f"[6/9] Building {env.profile} SDK...")

        platformio.build(project_dir, env.is_release)

        return SconsVariables.from_dump(project_dir)

    def _generate_project(self, resolution: Resolution) -> Path:
        env = self.env
        overlays = SdkconfigResolver(
            env.workspace_dir, env.profile, resolution.mcu, self.channel.track_file
        )

        builder = (
            ProjectBuilder(env.project_dir)
            .enable_scons_dump()
            .enable_c_entry_points()
            .options(env.pio_options)
            .files(tracked_globs(env.glob_base, env.glob_patterns, self.channel.track_file))
        )

        primary = overlays.resolve_primary(env.sdkconfig)
        if primary is not None:
            builder.files([primary])

        builder.sdkconfig_defaults(overlays.resolve_defaults(env.sdkconfig_defaults))

        return builder.generate(resolution)

    def _sdk_dir(self, scons_vars: SconsVariables) -> Path:
        profile = "release" if scons_vars.release_build else "debug"
        return (
            scons_vars.project_dir / ".pio" / "libdeps" / profile / self.env.project_name
        )

    def _clang_args(
        self,
        scons_vars: SconsVariables,
        sdk_dir: Path,
        search_paths: SearchPaths,
        mcu: str,
    ) -> List[str]:
        args = shlex.split(scons_vars.incflags)
        args.extend(shlex.split(scons_vars.defflags))
        args.extend(extra_include_args(sdk_dir))
        args.extend(search_paths.clang_args())
        args.extend(["-target", clang_target(mcu)])
        return args

    def _bindgen_exe(self) -> str:
        if self.env.bindgen:
            return self.env.bindgen

        exe = shutil.which("bindgen", path=self.env.search_path or os.defpath)
        if exe is None:
            raise ToolchainNotFound(
                "bindgen not found in environment ($PATH). "
                + "Install it with 'cargo install bindgen-cli' or set $BINDGEN"
            )
        return exe


def check_target(env: BuildEnvironment) -> str:
    """Resolve the MCU of the environment without running PlatformIO."""
    return resolve_mcu(env.target, env.mcu)

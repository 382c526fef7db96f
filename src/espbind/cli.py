"""
Command-line interface for espbind.

This module provides the `espbind` CLI tool, meant to be called from the
build script of the crate that wraps the ESP HomeKit SDK.
"""

import argparse
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from espbind import __version__
from espbind.build.cargo import CargoChannel
from espbind.build.command_executor import BuildError
from espbind.build.orchestrator import BindingsOrchestrator, check_target
from espbind.build.scons_vars import SconsDumpError
from espbind.cli_utils import ErrorFormatter, PathValidator, setup_logging
from espbind.config import BuildEnvironment, ConfigurationError, SdkconfigResolver
from espbind.packages import DownloadError, ResolutionError, ToolchainNotFound


@dataclass
class BuildArgs:
    """Arguments for the build command."""

    workspace_dir: Optional[Path] = None
    profile: Optional[str] = None
    target: Optional[str] = None
    out_dir: Optional[Path] = None
    header: Optional[Path] = None
    bindgen: Optional[str] = None
    verbose: bool = False


@dataclass
class ResolveArgs:
    """Arguments for the resolve command."""

    workspace_dir: Optional[Path] = None
    profile: Optional[str] = None
    target: Optional[str] = None
    out_dir: Optional[Path] = None
    verbose: bool = False


def _load_environment(args) -> BuildEnvironment:
    return BuildEnvironment.from_env(
        os.environ,
        profile=args.profile,
        target=args.target,
        out_dir=args.out_dir,
        workspace_dir=args.workspace_dir,
        header=getattr(args, "header", None),
        bindgen=getattr(args, "bindgen", None),
    )


def build_command(args: BuildArgs) -> None:
    """Build the SDK and generate Rust bindings.

    Examples:
        espbind build                              # Inside a Cargo build script
        espbind build ~/my-crate --profile debug   # By hand
        espbind build --bindgen ~/bin/bindgen      # Explicit bindgen
    """
    print(f"espbind v{__version__}")
    print()

    try:
        env = _load_environment(args)

        if args.verbose:
            print(f"Profile: {env.profile}")
            print(f"Target: {env.target}")
            print(f"Output: {env.out_dir}")
            print()

        orchestrator = BindingsOrchestrator(env, CargoChannel(), verbose=args.verbose)
        result = orchestrator.build()

        ErrorFormatter.print_success("Bindings generated!")
        print()
        print(f"Bindings: {result.bindings_path}")
        print(f"MCU: {result.mcu}")
        print(f"Build time: {result.build_time:.2f}s")
        sys.exit(0)

    except ConfigurationError as e:
        ErrorFormatter.handle_error("Configuration error", e)
    except ToolchainNotFound as e:
        ErrorFormatter.handle_error("Toolchain not found", e)
    except ResolutionError as e:
        ErrorFormatter.handle_error("Resolution failed", e)
    except DownloadError as e:
        ErrorFormatter.handle_error("Download failed", e)
    except BuildError as e:
        ErrorFormatter.handle_error("Build failed", e)
    except SconsDumpError as e:
        ErrorFormatter.handle_error("Build failed", e)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def resolve_command(args: ResolveArgs) -> None:
    """Show how the build would be configured, without running anything.

    Examples:
        espbind resolve --profile release --target riscv32imc-esp-espidf --out-dir target/out
    """
    try:
        env = _load_environment(args)
        orchestrator = BindingsOrchestrator(env, CargoChannel(), verbose=args.verbose)

        install_dir, is_default = orchestrator.resolve_install_dir()
        mcu = check_target(env)

        overlays = SdkconfigResolver(env.workspace_dir, env.profile, mcu)
        primary = overlays.resolve_primary(env.sdkconfig)
        defaults = overlays.resolve_defaults(env.sdkconfig_defaults)

        print(f"Workspace: {env.workspace_dir}")
        print(f"Install location: {install_dir}{' (default)' if is_default else ''}")
        print(f"MCU: {mcu}")
        print(f"Primary sdkconfig: {primary[0] if primary else '(none)'}")
        print("Sdkconfig defaults:")
        if not defaults:
            print("  (none)")
        for source, _dest in defaults:
            print(f"  {source}")
        sys.exit(0)

    except ConfigurationError as e:
        ErrorFormatter.handle_error("Configuration error", e)
    except ResolutionError as e:
        ErrorFormatter.handle_error("Resolution failed", e)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def _add_environment_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "workspace_dir",
        nargs="?",
        type=Path,
        default=None,
        help="Workspace directory (default: derived from $OUT_DIR)",
    )
    parser.add_argument(
        "--profile",
        default=None,
        help="Build profile, debug or release (default: $PROFILE)",
    )
    parser.add_argument(
        "--target",
        default=None,
        help="Rust target triple (default: $TARGET)",
    )
    parser.add_argument(
        "--out-dir",
        type=Path,
        default=None,
        help="Output directory (default: $OUT_DIR)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )


def main() -> None:
    """Main entry point for the espbind CLI."""
    parser = argparse.ArgumentParser(
        prog="espbind",
        description="espbind - ESP HomeKit SDK build and Rust bindings generator",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"espbind {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Build command
    build_parser = subparsers.add_parser(
        "build",
        help="Build the SDK and generate Rust bindings",
    )
    _add_environment_arguments(build_parser)
    build_parser.add_argument(
        "--header",
        type=Path,
        default=None,
        help="Binding header (default: src/include/bindings.h)",
    )
    build_parser.add_argument(
        "--bindgen",
        default=None,
        help="bindgen executable (default: $BINDGEN or bindgen on $PATH)",
    )

    # Resolve command
    resolve_parser = subparsers.add_parser(
        "resolve",
        help="Show the install location and sdkconfig overlays without building",
    )
    _add_environment_arguments(resolve_parser)

    # Parse arguments
    parsed_args = parser.parse_args()

    # If no command specified, show help
    if not parsed_args.command:
        parser.print_help()
        sys.exit(0)

    setup_logging(parsed_args.verbose)

    if parsed_args.workspace_dir is not None:
        PathValidator.validate_workspace_dir(parsed_args.workspace_dir)

    # Execute command
    if parsed_args.command == "build":
        build_args = BuildArgs(
            workspace_dir=parsed_args.workspace_dir,
            profile=parsed_args.profile,
            target=parsed_args.target,
            out_dir=parsed_args.out_dir,
            header=parsed_args.header,
            bindgen=parsed_args.bindgen,
            verbose=parsed_args.verbose,
        )
        build_command(build_args)
    elif parsed_args.command == "resolve":
        resolve_args = ResolveArgs(
            workspace_dir=parsed_args.workspace_dir,
            profile=parsed_args.profile,
            target=parsed_args.target,
            out_dir=parsed_args.out_dir,
            verbose=parsed_args.verbose,
        )
        resolve_command(resolve_args)


if __name__ == "__main__":
    main()

"""
Build environment snapshot.

This module reads every environment variable the pipeline depends on exactly
once and freezes the result into a BuildEnvironment, which is then passed to
each stage. No other module reads os.environ directly; subprocesses still
inherit the process environment.

Variables consumed:
    ESP_IDF_TOOLS_INSTALL_DIR       Install location directive
    ESP_IDF_SDKCONFIG               Primary sdkconfig path
    ESP_IDF_SDKCONFIG_DEFAULTS      Semicolon-separated sdkconfig defaults
    MCU                             MCU override
    PROFILE, TARGET, OUT_DIR        Supplied by Cargo
    ESP_IDF_SYS_PIO_CONF_HOMEKIT_*  Extra platformio.ini options (key = value)
    ESP_IDF_SYS_GLOB_BASE / _*      Extra files copied into the project
    CARGO_PIO_BUILD_ACTIVE          PIO-first build marker
    CARGO_PIO_BUILD_PROJECT_DIR     Project dir of a PIO-first build
    BINDGEN                         bindgen executable override
    PATH                            Search path for platformio, pio and bindgen
    PLATFORMIO_CORE_DIR             Core dir of a PlatformIO found on PATH

An empty ESP_IDF_SDKCONFIG_DEFAULTS disables the defaults overlays; only an
unset variable falls back to sdkconfig.defaults.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

ESP_IDF_TOOLS_INSTALL_DIR_VAR = "ESP_IDF_TOOLS_INSTALL_DIR"
ESP_IDF_SDKCONFIG_DEFAULTS_VAR = "ESP_IDF_SDKCONFIG_DEFAULTS"
ESP_IDF_SDKCONFIG_VAR = "ESP_IDF_SDKCONFIG"
MCU_VAR = "MCU"
PIO_OPTIONS_PREFIX = "ESP_IDF_SYS_PIO_CONF_HOMEKIT"
GLOB_PREFIX = "ESP_IDF_SYS_GLOB"
PIO_BUILD_ACTIVE_VAR = "CARGO_PIO_BUILD_ACTIVE"
PIO_BUILD_PROJECT_DIR_VAR = "CARGO_PIO_BUILD_PROJECT_DIR"
BINDGEN_VAR = "BINDGEN"
PATH_VAR = "PATH"
PLATFORMIO_CORE_DIR_VAR = "PLATFORMIO_CORE_DIR"

SDKCONFIG_FILE = "sdkconfig"
SDKCONFIG_DEFAULTS_FILE = "sdkconfig.defaults"

# Variables whose change must re-run the build script
TRACKED_ENV_VARS = (
    ESP_IDF_TOOLS_INSTALL_DIR_VAR,
    ESP_IDF_SDKCONFIG_VAR,
    ESP_IDF_SDKCONFIG_DEFAULTS_VAR,
    MCU_VAR,
)


class ConfigurationError(Exception):
    """Raised when the build configuration is malformed or incomplete."""

    pass


def _non_blank(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value


def _suffix_sort_key(name: str, prefix: str) -> Tuple[int, int, str]:
    suffix = name[len(prefix) + 1 :]
    if suffix.isdigit():
        return (0, int(suffix), suffix)
    return (1, 0, suffix)


def workspace_dir_from_out_dir(out_dir: Path) -> Optional[Path]:
    """Derive the Cargo workspace root from a build script OUT_DIR.

    OUT_DIR lives under ``<workspace>/target/...``; the workspace is the
    parent of the nearest ancestor named ``target``.

    Args:
        out_dir: Build script output directory

    Returns:
        Workspace root, or None if OUT_DIR is not under a target directory
    """
    for ancestor in [out_dir, *out_dir.parents]:
        if ancestor.name == "target":
            return ancestor.parent
    return None


def parse_env_options(
    environ: Mapping[str, str], prefix: str = PIO_OPTIONS_PREFIX
) -> List[Tuple[str, str]]:
    """Collect ``<prefix>_<n>`` variables holding ``key = value`` options.

    Options are ordered by suffix, numeric suffixes numerically first.

    Raises:
        ConfigurationError: If an option value has no '=' separator
    """
    names = sorted(
        (name for name in environ if name.startswith(f"{prefix}_")),
        key=lambda name: _suffix_sort_key(name, prefix),
    )

    options = []
    for name in names:
        value = environ[name]
        if "=" not in value:
            raise ConfigurationError(
                f"Invalid option in ${name}: '{value}'. Expected 'key = value'."
            )
        key, val = value.split("=", 1)
        options.append((key.strip(), val.strip()))
    return options


def parse_env_globs(
    environ: Mapping[str, str], prefix: str = GLOB_PREFIX
) -> Tuple[Optional[Path], List[str]]:
    """Collect the glob base directory and glob patterns.

    Returns:
        Tuple of (base directory or None, ordered list of patterns)
    """
    base_var = f"{prefix}_BASE"
    base = _non_blank(environ.get(base_var))

    names = sorted(
        (
            name
            for name in environ
            if name.startswith(f"{prefix}_") and name != base_var
        ),
        key=lambda name: _suffix_sort_key(name, prefix),
    )
    patterns = [environ[name].strip() for name in names if environ[name].strip()]

    return (Path(base) if base else None), patterns


@dataclass(frozen=True)
class BuildEnvironment:
    """Immutable snapshot of every input the build pipeline reads.

    Usage:
        env = BuildEnvironment.from_env(os.environ)
        orchestrator = BindingsOrchestrator(env, channel)
    """

    profile: str
    target: str
    out_dir: Path
    workspace_dir: Optional[Path] = None
    install_dir: Optional[str] = None
    sdkconfig: str = SDKCONFIG_FILE
    sdkconfig_defaults: str = SDKCONFIG_DEFAULTS_FILE
    mcu: Optional[str] = None
    pio_options: Tuple[Tuple[str, str], ...] = ()
    glob_base: Optional[Path] = None
    glob_patterns: Tuple[str, ...] = ()
    piofirst_project_dir: Optional[Path] = None
    header: Path = field(default_factory=lambda: Path("src") / "include" / "bindings.h")
    bindgen: Optional[str] = None
    search_path: Optional[str] = None
    platformio_core_dir: Optional[str] = None
    project_name: str = "esp-homekit-sdk"

    @property
    def is_release(self) -> bool:
        return self.profile == "release"

    @property
    def project_dir(self) -> Path:
        """Directory of the generated PlatformIO project."""
        return self.out_dir / self.project_name

    def tool_environ(self) -> Dict[str, str]:
        """Captured variables used to locate external tools."""
        environ = {}
        if self.search_path is not None:
            environ[PATH_VAR] = self.search_path
        if self.platformio_core_dir is not None:
            environ[PLATFORMIO_CORE_DIR_VAR] = self.platformio_core_dir
        return environ

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str],
        profile: Optional[str] = None,
        target: Optional[str] = None,
        out_dir: Optional[Path] = None,
        workspace_dir: Optional[Path] = None,
        header: Optional[Path] = None,
        bindgen: Optional[str] = None,
    ) -> "BuildEnvironment":
        """Build the snapshot from an environment mapping.

        Explicit arguments override the corresponding variables.

        Args:
            environ: Environment mapping (usually os.environ)
            profile: Build profile override ("debug" or "release")
            target: Target triple override
            out_dir: Output directory override
            workspace_dir: Workspace root override
            header: Binding header override
            bindgen: bindgen executable override

        Returns:
            BuildEnvironment instance

        Raises:
            ConfigurationError: If a required variable is missing or an
                option variable is malformed
        """
        profile = profile or _non_blank(environ.get("PROFILE"))
        target = target or _non_blank(environ.get("TARGET"))
        out_dir_value = out_dir or _non_blank(environ.get("OUT_DIR"))

        missing = [
            name
            for name, value in (
                ("PROFILE", profile),
                ("TARGET", target),
                ("OUT_DIR", out_dir_value),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(
                f"Missing required environment variable(s): {', '.join(missing)}. "
                + "espbind is meant to run from a Cargo build script."
            )

        resolved_out_dir = Path(out_dir_value).resolve()
        if workspace_dir is None:
            workspace_dir = workspace_dir_from_out_dir(resolved_out_dir)

        piofirst_project_dir = None
        if environ.get(PIO_BUILD_ACTIVE_VAR) is not None:
            project_dir = _non_blank(environ.get(PIO_BUILD_PROJECT_DIR_VAR))
            if project_dir:
                piofirst_project_dir = Path(project_dir)

        glob_base, glob_patterns = parse_env_globs(environ)

        mcu = _non_blank(environ.get(MCU_VAR))

        kwargs = {}
        if header is not None:
            kwargs["header"] = header

        return cls(
            profile=profile,
            target=target,
            out_dir=resolved_out_dir,
            workspace_dir=workspace_dir,
            install_dir=environ.get(ESP_IDF_TOOLS_INSTALL_DIR_VAR),
            sdkconfig=_non_blank(environ.get(ESP_IDF_SDKCONFIG_VAR)) or SDKCONFIG_FILE,
            sdkconfig_defaults=environ.get(
                ESP_IDF_SDKCONFIG_DEFAULTS_VAR, SDKCONFIG_DEFAULTS_FILE
            ),
            mcu=mcu.strip().lower() if mcu else None,
            pio_options=tuple(parse_env_options(environ)),
            glob_base=glob_base,
            glob_patterns=tuple(glob_patterns),
            piofirst_project_dir=piofirst_project_dir,
            bindgen=bindgen or _non_blank(environ.get(BINDGEN_VAR)),
            search_path=environ.get(PATH_VAR),
            platformio_core_dir=_non_blank(environ.get(PLATFORMIO_CORE_DIR_VAR)),
            **kwargs,
        )

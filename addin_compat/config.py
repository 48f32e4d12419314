"""Tool configuration loaded from YAML.

Example ``addin-compat.yaml``:

    scanner:
      command: ["checkbinarycompat", "@{response_file}"]
      timeout: 600
      flags:
        report_int_ptr_constructors: true
        report_version_mismatch: false
        report_embedded_interop_types: false
    cache_dir: ~/.cache/addin-compat
    app_bundles:
      release: Visual Studio.app
      preview: Visual Studio (Preview).app
    app_search_dirs:
      - /Applications
      - ~/Applications
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .errors import ConfigurationError
from .scanners.base import ScannerConfig
from .scanners.command import DEFAULT_COMMAND

DEFAULT_CACHE_DIR = Path("~/.cache/addin-compat")
DEFAULT_APP_BUNDLES = {
    "release": "Visual Studio.app",
    "preview": "Visual Studio (Preview).app",
}
DEFAULT_APP_SEARCH_DIRS = ["/Applications", "~/Applications"]

_TOP_LEVEL_KEYS = {"scanner", "cache_dir", "app_bundles", "app_search_dirs"}
_SCANNER_KEYS = {"command", "timeout", "flags"}
_FLAG_KEYS = {"report_int_ptr_constructors", "report_version_mismatch",
              "report_embedded_interop_types"}


@dataclass
class ToolConfig:
    """Settings shared by the CLI and the runner."""
    scanner_command: List[str] = field(default_factory=lambda: list(DEFAULT_COMMAND))
    scanner_timeout: Optional[int] = None
    scanner: ScannerConfig = field(default_factory=ScannerConfig)
    cache_dir: Path = field(default_factory=DEFAULT_CACHE_DIR.expanduser)
    app_bundles: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_APP_BUNDLES))
    app_search_dirs: List[Path] = field(
        default_factory=lambda: [Path(d).expanduser() for d in DEFAULT_APP_SEARCH_DIRS]
    )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ToolConfig":
        """Build a config from parsed YAML, rejecting unknown keys."""
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigurationError("Config file must contain a mapping")
        _check_keys(data, _TOP_LEVEL_KEYS, "config")

        config = cls()

        scanner = data.get("scanner") or {}
        _check_keys(scanner, _SCANNER_KEYS, "scanner")
        if "command" in scanner:
            command = scanner["command"]
            if isinstance(command, str):
                command = command.split()
            if not command:
                raise ConfigurationError("scanner.command must not be empty")
            config.scanner_command = [str(part) for part in command]
        if scanner.get("timeout") is not None:
            config.scanner_timeout = int(scanner["timeout"])
        flags = scanner.get("flags") or {}
        _check_keys(flags, _FLAG_KEYS, "scanner.flags")
        config.scanner = ScannerConfig(**{k: bool(v) for k, v in flags.items()})

        if data.get("cache_dir"):
            config.cache_dir = Path(data["cache_dir"]).expanduser()

        bundles = data.get("app_bundles") or {}
        _check_keys(bundles, set(DEFAULT_APP_BUNDLES), "app_bundles")
        config.app_bundles.update({k: str(v) for k, v in bundles.items()})

        if data.get("app_search_dirs"):
            config.app_search_dirs = [Path(d).expanduser() for d in data["app_search_dirs"]]

        return config


def _check_keys(section: Any, allowed: set, name: str) -> None:
    if not isinstance(section, dict):
        raise ConfigurationError(f"'{name}' must be a mapping")
    unknown = set(section) - allowed
    if unknown:
        raise ConfigurationError(
            f"Unknown key(s) in {name}: {', '.join(sorted(unknown))}"
        )


def load_config(config_file: Optional[Path] = None) -> ToolConfig:
    """Load tool configuration.

    Args:
        config_file: YAML file path. None returns the defaults.

    Raises:
        ConfigurationError: If the file is missing, unparsable or invalid.
    """
    if config_file is None:
        return ToolConfig()
    if not config_file.is_file():
        raise ConfigurationError(f"Config file does not exist: '{config_file}'")
    try:
        with open(config_file, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_file}: {e}") from e
    return ToolConfig.from_dict(data)

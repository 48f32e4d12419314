"""Tests for YAML tool configuration."""

from pathlib import Path

import pytest

from addin_compat.config import DEFAULT_APP_BUNDLES, ToolConfig, load_config
from addin_compat.errors import ConfigurationError
from addin_compat.scanners.base import ScannerConfig
from addin_compat.scanners.command import CommandScanEngine
from addin_compat.scanners.factory import create_adapter, create_engine


def test_defaults_without_file():
    config = load_config(None)

    assert config.scanner_command == ["checkbinarycompat", "@{response_file}"]
    assert config.scanner_timeout is None
    assert config.scanner == ScannerConfig()
    assert config.app_bundles == DEFAULT_APP_BUNDLES


def test_load_full_config(tmp_path):
    config_file = tmp_path / "addin-compat.yaml"
    config_file.write_text(
        "scanner:\n"
        "  command: mono /opt/scanner.exe @{response_file}\n"
        "  timeout: 120\n"
        "  flags:\n"
        "    report_version_mismatch: true\n"
        f"cache_dir: {tmp_path / 'cache'}\n"
        "app_bundles:\n"
        "  preview: Custom Preview.app\n"
        "app_search_dirs:\n"
        f"  - {tmp_path}\n"
    )

    config = load_config(config_file)

    assert config.scanner_command == ["mono", "/opt/scanner.exe", "@{response_file}"]
    assert config.scanner_timeout == 120
    assert config.scanner.report_version_mismatch is True
    assert config.scanner.report_int_ptr_constructors is True
    assert config.cache_dir == tmp_path / "cache"
    assert config.app_bundles["preview"] == "Custom Preview.app"
    assert config.app_bundles["release"] == DEFAULT_APP_BUNDLES["release"]
    assert config.app_search_dirs == [tmp_path]


def test_empty_file_gives_defaults(tmp_path):
    config_file = tmp_path / "empty.yaml"
    config_file.write_text("")

    assert load_config(config_file) == ToolConfig()


@pytest.mark.parametrize("text, message", [
    ("unknown: 1\n", "Unknown key"),
    ("scanner:\n  flags:\n    report_everything: true\n", "scanner.flags"),
    ("scanner:\n  command: []\n", "must not be empty"),
    ("- just\n- a list\n", "must contain a mapping"),
    ("scanner: [\n", "Invalid YAML"),
])
def test_invalid_config(tmp_path, text, message):
    config_file = tmp_path / "bad.yaml"
    config_file.write_text(text)

    with pytest.raises(ConfigurationError, match=message):
        load_config(config_file)


def test_missing_config_file(tmp_path):
    with pytest.raises(ConfigurationError, match="does not exist"):
        load_config(tmp_path / "missing.yaml")


def test_factory_builds_command_engine():
    config = ToolConfig(scanner_command=["scanner", "{root}"], scanner_timeout=30,
                        scanner=ScannerConfig(report_version_mismatch=True))

    engine = create_engine(config)
    adapter = create_adapter(config)

    assert isinstance(engine, CommandScanEngine)
    assert engine.command == ["scanner", "{root}"]
    assert engine.timeout == 30
    assert adapter.config.report_version_mismatch is True


def test_default_cache_dir_is_expanded():
    assert "~" not in str(ToolConfig().cache_dir)
    assert ToolConfig().cache_dir == Path("~/.cache/addin-compat").expanduser()

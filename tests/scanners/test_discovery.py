"""Tests for assembly discovery."""

from addin_compat.scanners.discovery import find_assemblies, load_exclusions


def _touch(path):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("")
    return path


def test_load_exclusions_skips_comments_and_blanks(tmp_path):
    config = tmp_path / "app-config.txt"
    config.write_text("# exclusions\n\nContents/MonoBundle/Tests/*\n  *.resources.dll  \n")

    assert load_exclusions(config) == ["Contents/MonoBundle/Tests/*", "*.resources.dll"]


def test_load_exclusions_missing_file(tmp_path):
    assert load_exclusions(None) == []
    assert load_exclusions(tmp_path / "missing.txt") == []


def test_find_assemblies_applies_exclusions(tmp_path):
    keep = _touch(tmp_path / "Contents" / "MonoBundle" / "Core.dll")
    _touch(tmp_path / "Contents" / "MonoBundle" / "Tests" / "Core.Tests.dll")
    _touch(tmp_path / "Contents" / "MonoBundle" / "fr" / "Core.resources.dll")
    config = tmp_path / "config.txt"
    config.write_text("Contents/MonoBundle/Tests/*\n*.resources.dll\n")

    assert find_assemblies(tmp_path, config) == [keep]


def test_find_assemblies_ignores_directories_named_like_assemblies(tmp_path):
    (tmp_path / "Weird.dll").mkdir()
    real = _touch(tmp_path / "Real.exe")

    assert find_assemblies(tmp_path) == [real]

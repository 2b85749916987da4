"""
Tests for YAML settings loading.
"""
from __future__ import annotations

from app.config import DEFAULT_CONFIG_PATH, Settings, get_settings, load_settings


def test_bundled_config_matches_defaults():
    assert DEFAULT_CONFIG_PATH.exists()
    assert load_settings(DEFAULT_CONFIG_PATH) == Settings()


def test_sections_are_flattened(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "server:\n"
        "  port: 9001\n"
        "progression:\n"
        "  default_max_level: 60\n"
        "editor:\n"
        "  max_segments: 4\n"
        "  snap_exp_ratio: 0.1\n"
        "  unknown_key: ignored\n",
        encoding="utf-8",
    )

    settings = load_settings(path)

    assert settings.port == 9001
    assert settings.default_max_level == 60
    assert settings.max_segments == 4
    assert settings.snap_exp_ratio == 0.1
    assert settings.append_span == 10


def test_missing_file_uses_defaults(tmp_path):
    assert load_settings(tmp_path / "absent.yaml") == Settings()


def test_empty_file_uses_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")

    assert load_settings(path) == Settings()


def test_environment_override(tmp_path, monkeypatch):
    path = tmp_path / "custom.yaml"
    path.write_text("editor:\n  append_span: 5\n", encoding="utf-8")
    monkeypatch.setenv("LEVELCURVE_CONFIG", str(path))

    assert get_settings().append_span == 5

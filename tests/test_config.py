"""Tests for config loading and path validation."""

import json
import os

from flowpro.core import config, paths


class TestLoadConfig:
    def test_defaults(self):
        cfg = config.load_config()
        assert cfg["brand"]["name"] == "FLOWPRO"
        assert cfg["brand"]["footer"].startswith("Generated via FlowPro Systems")
        assert cfg["limits"]["max_line_items"] == 500
        assert cfg["limits"]["max_template_bytes"] == 10 * 1024 * 1024

    def test_defaults_not_mutated(self):
        cfg = config.load_config()
        cfg["brand"]["name"] = "CHANGED"
        assert config.load_config()["brand"]["name"] == "FLOWPRO"

    def test_file_overrides(self, tmp_path):
        path = tmp_path / "cfg.json"
        path.write_text(json.dumps({"brand": {"name": "SPARKY", "bogus": 1},
                                    "unknown_section": {"a": 1}}))
        cfg = config.load_config(str(path))
        assert cfg["brand"]["name"] == "SPARKY"
        assert "bogus" not in cfg["brand"]
        assert "unknown_section" not in cfg

    def test_default_path_is_read(self, tmp_path, monkeypatch):
        path = tmp_path / "flowpro_config.json"
        path.write_text(json.dumps({"limits": {"max_line_items": 12}}))
        monkeypatch.setattr(paths, "CONFIG_PATH", str(path))
        assert config.get_limits()["max_line_items"] == 12

    def test_env_beats_file(self, tmp_path, monkeypatch):
        path = tmp_path / "cfg.json"
        path.write_text(json.dumps({"brand": {"tagline": "From file"}}))
        monkeypatch.setenv("FLOWPRO_BRAND_TAGLINE", "From env")
        assert config.load_config(str(path))["brand"]["tagline"] == "From env"

    def test_bad_env_value_ignored(self, monkeypatch):
        monkeypatch.setenv("FLOWPRO_MAX_NOTES_CHARS", "lots")
        assert config.get_limits()["max_notes_chars"] == 20_000

    def test_unreadable_file(self, tmp_path):
        path = tmp_path / "cfg.json"
        path.write_text("{not json")
        assert config.load_config(str(path))["brand"]["name"] == "FLOWPRO"
        path.write_text("[1, 2]")
        assert config.load_config(str(path))["brand"]["name"] == "FLOWPRO"

    def test_get_brand(self, monkeypatch):
        monkeypatch.setenv("FLOWPRO_BRAND_NAME", "ACME")
        assert config.get_brand()["name"] == "ACME"


class TestPaths:
    def test_ensure_dirs(self):
        paths.ensure_dirs()
        assert os.path.isdir(paths.DATA_DIR)
        assert os.path.isdir(paths.OUTPUT_DIR)

    def test_validate_paths(self):
        paths.ensure_dirs()
        result = paths.validate_paths()
        assert result["ok"], result["errors"]
        assert result["resolved"]["OUTPUT_DIR"] == paths.OUTPUT_DIR
        # No config file in the test environment: a warning, not an error
        assert any("CONFIG_PATH" in w for w in result["warnings"])
        assert not os.path.exists(os.path.join(paths.OUTPUT_DIR, ".write_test"))

    def test_missing_output_dir_is_an_error(self):
        result = paths.validate_paths()
        assert result["ok"] is False
        assert any("OUTPUT_DIR" in e for e in result["errors"])

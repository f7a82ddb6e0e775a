"""Tests for ``livefields init``."""

from __future__ import annotations

import json

from livefields.core.config import default_config, load_config


class TestInit:
    def test_writes_default_config(self, invoke, tmp_path):
        result = invoke("init")
        assert result.exit_code == 0, result.output
        written = json.loads((tmp_path / "livefields.json").read_text())
        assert written == default_config()
        assert "amount, name" in result.output

    def test_custom_port_and_fields(self, invoke, tmp_path):
        result = invoke("init", "--port", "9000", "--field", "total=0", "--field", "payee=Acme")
        assert result.exit_code == 0, result.output
        config = load_config((tmp_path / "livefields.json").read_text())
        assert config["port"] == 9000
        assert config["fields"] == {"total": "0", "payee": "Acme"}

    def test_idempotent(self, invoke, tmp_path):
        invoke("init", "--port", "9000")
        result = invoke("init", "--port", "9100")
        assert result.exit_code == 0
        assert "already exists" in result.output
        assert json.loads((tmp_path / "livefields.json").read_text())["port"] == 9000

    def test_path_option(self, invoke, tmp_path):
        target = tmp_path / "site"
        target.mkdir()
        result = invoke("init", "--path", str(target))
        assert result.exit_code == 0
        assert (target / "livefields.json").is_file()

    def test_directory_in_the_way(self, invoke, tmp_path):
        (tmp_path / "livefields.json").mkdir()
        result = invoke("init")
        assert result.exit_code != 0
        assert "not a file" in result.output

    def test_invalid_port(self, invoke, tmp_path):
        result = invoke("init", "--port", "70000")
        assert result.exit_code != 0
        assert "Invalid port" in result.output
        assert not (tmp_path / "livefields.json").exists()

    def test_invalid_field(self, invoke):
        result = invoke("init", "--field", "amount")
        assert result.exit_code != 0
        assert "Expected name=value" in result.output

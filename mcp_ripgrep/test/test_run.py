"""Tests for mcp_ripgrep/run.py — load_config, prepare_server_args, run_server, main."""

import os
import sys
from unittest.mock import patch

import pytest
import yaml

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from mcp_ripgrep import run as runner
from mcp_ripgrep.run import load_config, main, prepare_server_args, run_server


# ── load_config ─────────────────────────────────────────────────────────────

class TestLoadConfig:
    def test_loads_valid_yaml(self, tmp_path):
        config = {"server": {"transport": "sse", "port": 9000, "options": {"verbose": True}}}
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump(config))
        result = load_config(str(config_file))
        assert result["server"]["port"] == 9000
        assert result["server"]["options"] == {"verbose": True}

    def test_missing_file_raises(self):
        with pytest.raises(FileNotFoundError):
            load_config("/nonexistent/config.yaml")

    def test_default_config(self):
        result = load_config()
        assert result["server"]["transport"] == "stdio"
        assert result["server"]["enabled"] is True
        assert result["server"]["options"]["base_args"] == ["--json", "--no-heading"]

    def test_empty_file_gets_server_section(self, tmp_path):
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")
        assert load_config(str(config_file)) == {"server": {}}

    def test_extra_configs_override_and_merge_options(self, tmp_path):
        base = {"server": {"transport": "stdio", "port": 9000,
                           "options": {"verbose": False, "rg_path": "/usr/bin/rg"}}}
        extra = {"server": {"transport": "sse", "options": {"verbose": True}}}

        base_file = tmp_path / "base.yaml"
        base_file.write_text(yaml.dump(base))
        extra_file = tmp_path / "extra.yaml"
        extra_file.write_text(yaml.dump(extra))

        result = load_config(str(base_file), extra_configs=[str(extra_file)])
        assert result["server"]["transport"] == "sse"
        assert result["server"]["port"] == 9000
        assert result["server"]["options"] == {"verbose": True, "rg_path": "/usr/bin/rg"}

    def test_extra_config_missing_file_raises(self, tmp_path):
        base_file = tmp_path / "base.yaml"
        base_file.write_text(yaml.dump({"server": {}}))
        with pytest.raises(FileNotFoundError):
            load_config(str(base_file), extra_configs=["/nonexistent/extra.yaml"])

    def test_invalid_yaml_raises(self, tmp_path):
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("server: [unclosed\n")
        with pytest.raises(yaml.YAMLError):
            load_config(str(config_file))


# ── prepare_server_args ─────────────────────────────────────────────────────

class TestPrepareServerArgs:
    def test_defaults(self):
        args = prepare_server_args({"server": {"transport": "stdio"}})
        assert args == ("stdio", "0.0.0.0", 18220, "/ripgrep", {})

    def test_values_from_config(self):
        config = {"server": {"transport": "sse", "host": "127.0.0.1", "port": "9001",
                             "path": "/rg", "options": {"rg_path": "/opt/rg"}}}
        assert prepare_server_args(config) == ("sse", "127.0.0.1", 9001, "/rg", {"rg_path": "/opt/rg"})

    def test_transport_override(self):
        args = prepare_server_args({"server": {"transport": "stdio"}}, transport="streamable-http")
        assert args[0] == "streamable-http"

    def test_disabled_server(self):
        assert prepare_server_args({"server": {"enabled": False}}) is None

    def test_unknown_transport_rejected(self):
        with pytest.raises(ValueError):
            prepare_server_args({"server": {"transport": "carrier-pigeon"}})


# ── run_server ──────────────────────────────────────────────────────────────

class TestRunServer:
    def test_run_server_success(self):
        with patch.object(runner.server, "run") as server_run:
            result = run_server(transport="stdio", host="0.0.0.0", port=18220,
                                path="/ripgrep", options={"verbose": True})
        assert result is True
        server_run.assert_called_once_with(transport="stdio", host="0.0.0.0", port=18220,
                                           path="/ripgrep", options={"verbose": True})

    def test_run_server_error(self):
        with patch.object(runner.server, "run", side_effect=OSError("address in use")):
            result = run_server(transport="sse", host="0.0.0.0", port=18220,
                                path="/ripgrep", options={})
        assert result is False


# ── main ────────────────────────────────────────────────────────────────────

class TestMain:
    def test_main_runs_default_config(self):
        with patch.object(runner, "run_server", return_value=True) as fake_run:
            assert main([]) == 0
        transport, host, port, path, options = fake_run.call_args[0]
        assert transport == "stdio"
        assert options["base_args"] == ["--json", "--no-heading"]

    def test_main_transport_flag(self):
        with patch.object(runner, "run_server", return_value=True) as fake_run:
            main(["--transport", "sse"])
        assert fake_run.call_args[0][0] == "sse"

    def test_main_disabled_server(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({"server": {"enabled": False}}))
        with patch.object(runner, "run_server") as fake_run:
            assert main(["--config", str(config_file)]) == 1
        fake_run.assert_not_called()

    def test_main_reports_failure(self):
        with patch.object(runner, "run_server", return_value=False):
            assert main([]) == 1

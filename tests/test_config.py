"""Tests for configuration loading and validation."""

import json

import pytest

from config import (
    Config,
    LoggingConfig,
    NodeConfig,
    NodeSettings,
    SnapshotSettings,
    create_default_config,
    format_duration,
    load_config,
    parse_duration,
)
from snapshot.errors import ConfigurationError


class TestDurations:

    @pytest.mark.parametrize("value,seconds", [
        ("24h", 86400),
        ("1h30m", 5400),
        ("90s", 90),
        ("500ms", 0.5),
        ("1.5h", 5400),
        ("3600", 3600),
        (600, 600),
        (2.5, 2.5),
    ])
    def test_parse(self, value, seconds):
        assert parse_duration(value) == pytest.approx(seconds)

    @pytest.mark.parametrize("value", ["", "abc", "10x", "h", "1h 30m", True])
    def test_parse_invalid(self, value):
        with pytest.raises(ValueError):
            parse_duration(value)

    @pytest.mark.parametrize("seconds,text", [
        (86400, "24h0m0s"),
        (5400, "1h30m0s"),
        (90, "1m30s"),
        (45, "45s"),
        (0.5, "500ms"),
        (61.5, "1m1.5s"),
        (3661.25, "1h1m1.25s"),
    ])
    def test_format(self, seconds, text):
        assert format_duration(seconds) == text


class TestModels:

    def test_defaults(self):
        settings = SnapshotSettings()
        assert settings.interval == 86400
        assert settings.retention == 7
        assert settings.compression is True

    def test_interval_string_is_parsed(self):
        assert SnapshotSettings(interval="6h").interval == 21600

    def test_invalid_interval_rejected(self):
        with pytest.raises(ValueError):
            SnapshotSettings(interval="often")

    def test_paths_expand_env_and_home(self, monkeypatch, tmp_path):
        monkeypatch.setenv("NODE_ROOT", str(tmp_path))
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        node = NodeConfig(
            node={"home_dir": "$NODE_ROOT/.gaia", "chain_id": "cosmoshub-4"},
            snapshot={"temp_dir": "~/snaps"},
        )

        assert node.data_path == tmp_path / ".gaia" / "data"
        assert node.snapshot_dir == tmp_path / "home" / "snaps" / "cosmoshub-4"

    def test_log_level_normalized(self):
        assert Config(logging={"level": "debug"}).logging.level == "DEBUG"

    @pytest.mark.parametrize("model", [NodeSettings, SnapshotSettings, LoggingConfig])
    def test_uses_field_validators(self, model):
        decorators = model.__pydantic_decorators__
        assert decorators.field_validators
        assert not decorators.validators

    def test_path_validator_runs_before_coercion(self, monkeypatch, tmp_path):
        monkeypatch.setenv("NODE_ROOT", str(tmp_path))
        assert NodeSettings(home_dir="$NODE_ROOT", chain_id="c").home_dir == str(tmp_path)


class TestLoadConfig:

    def test_loads_file(self, app_config, data_dir):
        assert app_config.get_enabled_nodes() == ["testchain"]
        node = app_config.nodes["testchain"]
        assert node.data_path == data_dir
        assert node.snapshot.interval == 3600
        assert node.snapshot.retention == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(str(tmp_path / "absent.json"))

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "nodes.json"
        path.write_text("{not json")
        with pytest.raises(ConfigurationError, match="Failed to read"):
            load_config(str(path))

    def test_invalid_field_type(self, tmp_path, node_config_data):
        node_config_data["snapshot"]["retention"] = "many"
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"nodes": {"testchain": node_config_data}}))

        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            load_config(str(path))

    def test_no_enabled_nodes(self, tmp_path, node_config_data):
        node_config_data["enabled"] = False
        path = tmp_path / "nodes.json"
        path.write_text(json.dumps({"nodes": {"testchain": node_config_data}}))

        with pytest.raises(ConfigurationError, match="no enabled nodes"):
            load_config(str(path))

    @pytest.mark.parametrize("section,field,value,message", [
        ("node", "home_dir", "", "home_dir is required"),
        ("node", "chain_id", "", "chain_id is required"),
        ("s3", "bucket", "", "bucket is required"),
        ("snapshot", "interval", "0s", "interval must be positive"),
        ("snapshot", "retention", -1, "retention cannot be negative"),
    ])
    def test_required_fields(self, tmp_path, node_config_data, section, field, value, message):
        node_config_data[section][field] = value
        path = tmp_path / "nodes.json"
        path.write_text(json.dumps({"nodes": {"testchain": node_config_data}}))

        with pytest.raises(ConfigurationError, match=message):
            load_config(str(path))

    def test_disabled_nodes_are_not_validated(self, tmp_path, node_config_data):
        data = {"nodes": {
            "testchain": node_config_data,
            "retired": {"enabled": False, "node": {"home_dir": ""}, "s3": {"bucket": ""}},
        }}
        path = tmp_path / "nodes.json"
        path.write_text(json.dumps(data))

        config = load_config(str(path))

        assert config.get_enabled_nodes() == ["testchain"]
        assert "retired" in config.nodes


class TestGetNodeConfig:

    def test_merges_global_credentials(self, app_config):
        node = app_config.get_node_config("testchain")

        assert node.s3.access_key == "AKIAGLOBAL"
        assert node.s3.secret_key == "globalsecret"
        assert node.s3.region == "us-east-1"

    def test_node_credentials_take_precedence(self, app_config):
        app_config.nodes["testchain"].s3.access_key = "AKIANODE"

        assert app_config.get_node_config("testchain").s3.access_key == "AKIANODE"

    def test_does_not_mutate_loaded_config(self, app_config):
        app_config.get_node_config("testchain")
        assert app_config.nodes["testchain"].s3.access_key == ""

    def test_region_falls_back_to_global(self, app_config):
        app_config.nodes["testchain"].s3.region = ""
        app_config.global_s3.region = "ap-southeast-1"

        assert app_config.get_node_config("testchain").s3.region == "ap-southeast-1"

    def test_unknown_node(self, app_config):
        with pytest.raises(ConfigurationError, match="not found"):
            app_config.get_node_config("nope")

    def test_disabled_node(self, app_config):
        with pytest.raises(ConfigurationError, match="not enabled"):
            app_config.get_node_config("retired")


def test_default_config_round_trip(tmp_path):
    path = tmp_path / "nodes.json"
    create_default_config(str(path))

    config = load_config(str(path))

    assert config.get_enabled_nodes() == ["cosmoshub"]
    node = config.get_node_config("cosmoshub")
    assert node.node.chain_id == "cosmoshub-4"
    assert node.snapshot.interval == 86400
    assert node.s3.path_prefix == "snapshots/cosmoshub"

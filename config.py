"""Configuration management for snapshot-cosmos."""

import copy
import json
import os
import re
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from snapshot.errors import ConfigurationError

DEFAULT_CONFIG_PATH = "nodes.json"

_DURATION_PART = re.compile(r'(\d+(?:\.\d+)?)(ns|us|µs|ms|s|m|h)')
_DURATION_UNITS = {
    'ns': 1e-9, 'us': 1e-6, 'µs': 1e-6, 'ms': 1e-3,
    's': 1.0, 'm': 60.0, 'h': 3600.0,
}


def parse_duration(value: Union[str, int, float]) -> float:
    """Parse a duration into seconds.

    Accepts plain numbers (seconds) or Go-style strings such as "24h",
    "1h30m", "90s" and "500ms".
    """
    if isinstance(value, bool):
        raise ValueError(f"invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)

    text = str(value).strip()
    if not text:
        raise ValueError("duration is empty")
    try:
        return float(text)
    except ValueError:
        pass

    pos = 0
    total = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            raise ValueError(f"invalid duration: {value!r}")
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if pos != len(text) or pos == 0:
        raise ValueError(f"invalid duration: {value!r}")
    return total


def format_duration(seconds: float) -> str:
    """Format seconds as a Go-style duration (e.g. "1h30m0s")."""
    if seconds < 1:
        return f"{seconds * 1000:g}ms"
    whole_minutes, secs = divmod(seconds, 60)
    hours, minutes = divmod(int(whole_minutes), 60)
    if hours:
        return f"{hours}h{minutes}m{secs:g}s"
    if minutes:
        return f"{minutes}m{secs:g}s"
    return f"{secs:g}s"


def _expand(v):
    if isinstance(v, str):
        return os.path.expanduser(os.path.expandvars(v))
    return v


class NodeSettings(BaseModel):
    """Blockchain node location and identity."""
    home_dir: str = ""
    data_dir: str = "data"
    chain_id: str = ""
    binary_path: str = ""
    rpc_endpoint: str = ""

    @field_validator('home_dir', 'data_dir', mode='before')
    @classmethod
    def expand_paths(cls, v):
        """Expand environment variables and user home directory."""
        return _expand(v)


class SnapshotSettings(BaseModel):
    """Snapshot schedule and retention."""
    enabled: bool = True
    interval: float = 24 * 3600
    retention: int = 7
    compression: bool = True
    temp_dir: str = "/tmp/snapshot-cosmos"

    @field_validator('interval', mode='before')
    @classmethod
    def parse_interval(cls, v):
        return parse_duration(v)

    @field_validator('temp_dir', mode='before')
    @classmethod
    def expand_temp_dir(cls, v):
        return _expand(v)


class S3Settings(BaseModel):
    """Per-node bucket settings. Empty credentials fall back to global_s3."""
    bucket: str = ""
    region: str = ""
    access_key: str = ""
    secret_key: str = ""
    endpoint: str = ""
    path_prefix: str = ""
    use_ssl: bool = True


class GlobalS3Config(BaseModel):
    """S3 settings shared by every node."""
    access_key: str = ""
    secret_key: str = ""
    endpoint: str = ""
    region: str = "us-east-1"


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    file: Optional[str] = None

    @field_validator('level', mode='before')
    @classmethod
    def normalize_level(cls, v):
        return str(v).upper()


class NodeConfig(BaseModel):
    """Everything needed to snapshot one node."""
    enabled: bool = True
    node: NodeSettings = Field(default_factory=NodeSettings)
    snapshot: SnapshotSettings = Field(default_factory=SnapshotSettings)
    s3: S3Settings = Field(default_factory=S3Settings)

    @property
    def data_path(self) -> Path:
        """Full path to the node data directory."""
        return Path(self.node.home_dir) / self.node.data_dir

    @property
    def snapshot_dir(self) -> Path:
        """Local directory holding this node's snapshots."""
        return Path(self.snapshot.temp_dir) / self.node.chain_id


class Config(BaseModel):
    """Main configuration model."""
    nodes: Dict[str, NodeConfig] = {}
    global_s3: GlobalS3Config = Field(default_factory=GlobalS3Config)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def get_enabled_nodes(self) -> List[str]:
        """Names of enabled nodes, sorted."""
        return sorted(name for name, node in self.nodes.items() if node.enabled)

    def get_node_config(self, node_name: str) -> NodeConfig:
        """Resolved configuration for a node, with global S3 settings merged in.

        Raises:
            ConfigurationError: node is unknown or disabled
        """
        node_cfg = self.nodes.get(node_name)
        if node_cfg is None:
            raise ConfigurationError(f"node {node_name} not found in configuration")
        if not node_cfg.enabled:
            raise ConfigurationError(f"node {node_name} is not enabled")

        node_cfg = copy.deepcopy(node_cfg)
        if not node_cfg.s3.access_key:
            node_cfg.s3.access_key = self.global_s3.access_key
        if not node_cfg.s3.secret_key:
            node_cfg.s3.secret_key = self.global_s3.secret_key
        if not node_cfg.s3.endpoint:
            node_cfg.s3.endpoint = self.global_s3.endpoint
        if not node_cfg.s3.region:
            node_cfg.s3.region = self.global_s3.region
        return node_cfg


def validate_node_config(name: str, node_cfg: NodeConfig, global_s3: GlobalS3Config) -> None:
    """Check one enabled node's required fields and limits."""
    if not node_cfg.node.home_dir:
        raise ConfigurationError(f"node {name}: home_dir is required")
    if not node_cfg.node.chain_id:
        raise ConfigurationError(f"node {name}: chain_id is required")
    if not node_cfg.s3.bucket:
        raise ConfigurationError(f"node {name}: s3.bucket is required")
    if not (node_cfg.s3.region or global_s3.region):
        raise ConfigurationError(f"node {name}: s3.region is required")
    if node_cfg.snapshot.interval <= 0:
        raise ConfigurationError(f"node {name}: snapshot.interval must be positive")
    if node_cfg.snapshot.retention < 0:
        raise ConfigurationError(f"node {name}: snapshot.retention cannot be negative")


def validate_config(config: Config) -> None:
    """Validate every enabled node; at least one must be enabled."""
    enabled = config.get_enabled_nodes()
    if not enabled:
        raise ConfigurationError("no enabled nodes found in configuration")
    for name in enabled:
        validate_node_config(name, config.nodes[name], config.global_s3)


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> Config:
    """Load and validate configuration from a JSON file.

    Raises:
        ConfigurationError: file missing, unparsable or invalid
    """
    config_file = Path(config_path)

    if not config_file.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with open(config_file, 'r') as f:
            config_data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Failed to read config file {config_path}: {e}") from e

    try:
        config = Config(**config_data)
    except (ValidationError, TypeError) as e:
        raise ConfigurationError(f"Invalid configuration in {config_path}: {e}") from e

    validate_config(config)
    return config


def default_config_data() -> dict:
    return {
        "nodes": {
            "cosmoshub": {
                "enabled": True,
                "node": {
                    "home_dir": "~/.gaia",
                    "data_dir": "data",
                    "chain_id": "cosmoshub-4",
                    "binary_path": "gaiad",
                    "rpc_endpoint": "http://localhost:26657"
                },
                "snapshot": {
                    "enabled": True,
                    "interval": "24h",
                    "retention": 7,
                    "compression": True,
                    "temp_dir": "/tmp/snapshot-cosmos/cosmoshub"
                },
                "s3": {
                    "bucket": "your-bucket-name",
                    "region": "us-east-1",
                    "path_prefix": "snapshots/cosmoshub",
                    "use_ssl": True
                }
            }
        },
        "global_s3": {
            "access_key": "",
            "secret_key": "",
            "endpoint": "",
            "region": "us-east-1"
        },
        "logging": {
            "level": "INFO",
            "file": None
        }
    }


def create_default_config(config_path: str = DEFAULT_CONFIG_PATH) -> None:
    """Write a default configuration file."""
    with open(config_path, 'w') as f:
        json.dump(default_config_data(), f, indent=2)

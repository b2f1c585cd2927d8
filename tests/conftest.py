"""Pytest configuration and fixtures."""

import json
import logging
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List

import pytest

from config import Config, NodeConfig
from snapshot.errors import StorageError, UploadError


class FakeGateway:
    """In-memory object store recording every call."""

    def __init__(self, keys=None):
        self.objects: Dict[str, bytes] = {k: b'' for k in (keys or [])}
        self.calls: List[tuple] = []
        self.fail_put = False
        self.fail_list = False
        self.fail_delete = set()

    def put(self, local_path, key):
        self.calls.append(('put', str(local_path), key))
        if self.fail_put:
            raise UploadError(key, ConnectionError("endpoint unreachable"))
        self.objects[key] = Path(local_path).read_bytes()

    def list(self, prefix):
        self.calls.append(('list', prefix))
        if self.fail_list:
            raise StorageError(f"Failed to list {prefix}: access denied")
        return sorted(k for k in self.objects if k.startswith(prefix))

    def delete(self, key):
        self.calls.append(('delete', key))
        if key in self.fail_delete:
            raise StorageError(f"Failed to delete {key}: access denied")
        self.objects.pop(key, None)

    def get(self, key, local_path):
        self.calls.append(('get', key, str(local_path)))
        if key not in self.objects:
            raise StorageError(f"Failed to download {key}: NoSuchKey")
        Path(local_path).parent.mkdir(parents=True, exist_ok=True)
        Path(local_path).write_bytes(self.objects[key])
        return Path(local_path)

    def call_names(self):
        return [c[0] for c in self.calls]


class StepClock:
    """Clock returning a new UTC time, one second later, on every call."""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self):
        current = self.now
        self.now = self.now + timedelta(seconds=1)
        return current


@pytest.fixture(autouse=True)
def restore_root_logging():
    """CLI commands reconfigure the root logger; put it back after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def step_clock() -> StepClock:
    return StepClock()


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """A small node data directory: three files of 10 B, 0 B and 1024 B."""
    root = tmp_path / "node_home" / "data"
    (root / "blockstore.db").mkdir(parents=True)
    (root / "blockstore.db" / "000001.log").write_bytes(b"0123456789")
    (root / "priv_validator_state.json").write_bytes(b"")
    (root / "application.db").mkdir()
    (root / "application.db" / "MANIFEST").write_bytes(os.urandom(1024))
    return root


@pytest.fixture
def node_config_data(tmp_path: Path, data_dir: Path) -> dict:
    return {
        "enabled": True,
        "node": {
            "home_dir": str(data_dir.parent),
            "data_dir": "data",
            "chain_id": "testchain-1",
        },
        "snapshot": {
            "interval": "1h",
            "retention": 2,
            "compression": True,
            "temp_dir": str(tmp_path / "snapshots"),
        },
        "s3": {
            "bucket": "test-bucket",
            "region": "us-east-1",
            "path_prefix": "snapshots/testchain",
        },
    }


@pytest.fixture
def node_config(node_config_data: dict) -> NodeConfig:
    return NodeConfig(**node_config_data)


@pytest.fixture
def config_file(tmp_path: Path, node_config_data: dict) -> Path:
    """A nodes.json with one enabled and one disabled node."""
    data = {
        "nodes": {
            "testchain": node_config_data,
            "retired": {
                "enabled": False,
                "node": {"home_dir": "/nonexistent", "chain_id": "retired-1"},
                "s3": {"bucket": "old-bucket"},
            },
        },
        "global_s3": {"access_key": "AKIAGLOBAL", "secret_key": "globalsecret"},
        "logging": {"level": "warning"},
    }
    path = tmp_path / "nodes.json"
    path.write_text(json.dumps(data))
    return path


@pytest.fixture
def app_config(config_file: Path) -> Config:
    from config import load_config
    return load_config(str(config_file))

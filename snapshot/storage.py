"""Storage capability consumed by the orchestrator and the pruner."""

from pathlib import Path
from typing import List, Protocol, runtime_checkable


@runtime_checkable
class ObjectStoreGateway(Protocol):
    """Narrow object store interface: put, list, delete and get by key.

    `list` returns keys in ascending order. Deleting a key that is already
    gone is not an error.
    """

    def put(self, local_path: Path, key: str) -> None: ...

    def list(self, prefix: str) -> List[str]: ...

    def delete(self, key: str) -> None: ...

    def get(self, key: str, local_path: Path) -> Path: ...

"""S3 storage for snapshot-cosmos.

Provides the object store gateway used to upload, list, prune and fetch
node snapshots in an S3 (or S3-compatible) bucket.
"""

from .gateway import ObjectStoreGateway, S3Gateway

__all__ = [
    'ObjectStoreGateway',
    'S3Gateway',
]

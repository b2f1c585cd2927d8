"""Object store gateway - the narrow storage interface used by the snapshot core.

S3Gateway is the boto3 implementation. Anything exposing put/list/delete/get
with the same meaning can stand in for it (tests use an in-memory fake).
"""

import logging
from pathlib import Path
from typing import List, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from tqdm import tqdm

from snapshot.errors import StorageError, UploadError
from snapshot.storage import ObjectStoreGateway

logger = logging.getLogger(__name__)

MISSING_KEY_CODES = {'NoSuchKey', '404', 'NotFound'}


def content_type(filename: str) -> str:
    return 'application/gzip' if filename.endswith('.gz') else 'application/x-tar'


class S3Gateway:
    """S3 (or S3-compatible) bucket access for one node's snapshots."""

    def __init__(self, settings, client=None, show_progress: bool = True,
                 logger: Optional[logging.Logger] = None):
        """Initialize the gateway.

        Args:
            settings: S3Settings for the node (bucket, region, credentials, endpoint)
            client: Pre-built boto3 S3 client; built from settings when None
            show_progress: Show a tqdm progress bar while uploading
            logger: Logger to use instead of the module logger
        """
        self.settings = settings
        self.bucket = settings.bucket
        self.show_progress = show_progress
        self.logger = logger or logging.getLogger(__name__)
        self.s3_client = client if client is not None else self._build_client(settings)

    @staticmethod
    def _build_client(settings):
        boto_config = BotoConfig(
            region_name=settings.region,
            retries={'max_attempts': 3, 'mode': 'adaptive'}
        )
        client_kwargs = {'config': boto_config, 'use_ssl': settings.use_ssl}
        if settings.endpoint:
            client_kwargs['endpoint_url'] = settings.endpoint
        if settings.access_key:
            client_kwargs['aws_access_key_id'] = settings.access_key
            client_kwargs['aws_secret_access_key'] = settings.secret_key
        return boto3.client('s3', **client_kwargs)

    def put(self, local_path, key: str) -> None:
        """Upload a local file to key.

        Raises:
            UploadError: the file is unreadable or S3 rejected the upload
        """
        local_path = Path(local_path)
        if not local_path.is_file():
            raise UploadError(key, FileNotFoundError(f"Snapshot file does not exist: {local_path}"))

        try:
            file_size = local_path.stat().st_size
            self.logger.info("Uploading snapshot to S3...")
            self.logger.info(f"  Source: {local_path}")
            self.logger.info(f"  Destination: s3://{self.bucket}/{key}")
            self.logger.info(f"  Size: {file_size} bytes")

            with tqdm(total=file_size, unit='B', unit_scale=True, desc="  Uploading",
                      leave=False, disable=not self.show_progress) as pbar:
                with open(local_path, 'rb') as f:
                    self.s3_client.upload_fileobj(
                        f,
                        self.bucket,
                        key,
                        ExtraArgs={
                            'ContentType': content_type(local_path.name),
                            'Metadata': {
                                'original_filename': local_path.name,
                                'original_size': str(file_size),
                                'created_by': 'snapshot-cosmos'
                            }
                        },
                        Callback=pbar.update
                    )
        except (ClientError, BotoCoreError, OSError) as e:
            self.logger.error(f"S3 upload failed: {e}")
            raise UploadError(key, e) from e

        self.logger.info(f"✓ Upload complete: s3://{self.bucket}/{key}")

    def list(self, prefix: str) -> List[str]:
        """All keys under prefix, sorted ascending."""
        keys = []
        try:
            paginator = self.s3_client.get_paginator('list_objects_v2')
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                for obj in page.get('Contents', []):
                    keys.append(obj['Key'])
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to list s3://{self.bucket}/{prefix}: {e}") from e

        return sorted(keys)

    def delete(self, key: str) -> None:
        """Delete key. A key that is already gone counts as deleted."""
        self.logger.info(f"Deleting object from S3: s3://{self.bucket}/{key}")
        try:
            self.s3_client.delete_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') in MISSING_KEY_CODES:
                self.logger.debug(f"Already deleted or missing: {key}")
                return
            raise StorageError(f"Failed to delete s3://{self.bucket}/{key}: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"Failed to delete s3://{self.bucket}/{key}: {e}") from e

    def get(self, key: str, local_path) -> Path:
        """Download key to local_path, creating parent directories."""
        local_path = Path(local_path)
        self.logger.info(f"Downloading s3://{self.bucket}/{key} to {local_path}")
        try:
            local_path.parent.mkdir(parents=True, exist_ok=True)
            self.s3_client.download_file(self.bucket, key, str(local_path))
        except (ClientError, BotoCoreError, OSError) as e:
            raise StorageError(f"Failed to download s3://{self.bucket}/{key}: {e}") from e

        self.logger.info(f"✓ Download complete: {local_path}")
        return local_path

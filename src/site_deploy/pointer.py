"""
site_deploy.pointer — Current-version pointer in CloudFront KeyValueStore.

Record:
  store: the KeyValueStore named by DeploymentConfig.key_value_store_arn
  key:   current-version
  value: live version string

Writes are conditional on the store ETag (PutKey IfMatch), which makes the
read-then-write in DeploymentManager a compare-and-swap.  A stale ETag is a
ConflictError; nothing here retries.
"""

from __future__ import annotations

from typing import Any

from aws_lambda_powertools import Logger
from botocore.exceptions import BotoCoreError, ClientError

from site_deploy.clients import error_code, store_error
from site_deploy.exceptions import ConflictError, NotFoundError
from site_deploy.models import CURRENT_VERSION_KEY, PointerState

logger = Logger(service="site-deploy", child=True)

_NOT_FOUND = "ResourceNotFoundException"
_CONFLICT = "ConflictException"


class VersionPointerStore:
    def __init__(self, kvs_client: Any, *, kvs_arn: str, key: str = CURRENT_VERSION_KEY) -> None:
        self._kvs = kvs_client
        self._kvs_arn = kvs_arn
        self._key = key

    def read(self) -> PointerState:
        """Return the pointer value and the ETag required for the next write.

        Raises NotFoundError if the KeyValueStore itself does not exist.  A
        store whose pointer key was never written yields version=None.
        """
        try:
            described = self._kvs.describe_key_value_store(KvsARN=self._kvs_arn)
        except ClientError as exc:
            if error_code(exc) == _NOT_FOUND:
                raise NotFoundError(f"KeyValueStore not found: {self._kvs_arn}") from exc
            raise store_error("DescribeKeyValueStore", exc) from exc
        except BotoCoreError as exc:
            raise store_error("DescribeKeyValueStore", exc) from exc

        etag = described["ETag"]
        try:
            response = self._kvs.get_key(KvsARN=self._kvs_arn, Key=self._key)
            version: str | None = response.get("Value")
        except ClientError as exc:
            if error_code(exc) != _NOT_FOUND:
                raise store_error(f"GetKey {self._key}", exc) from exc
            version = None
        except BotoCoreError as exc:
            raise store_error(f"GetKey {self._key}", exc) from exc
        return PointerState(version=version, etag=etag)

    def write(self, version: str, expected_etag: str) -> str:
        """Set the pointer to version if the store ETag still equals expected_etag.

        Returns the store ETag after the write.
        """
        logger.info("Update KVS using ETag", etag=expected_etag, version=version)
        try:
            response = self._kvs.put_key(
                KvsARN=self._kvs_arn,
                Key=self._key,
                Value=version,
                IfMatch=expected_etag,
            )
        except ClientError as exc:
            if error_code(exc) == _CONFLICT:
                raise ConflictError(
                    f"{self._key} was modified concurrently; ETag {expected_etag!r} is stale",
                    expected_etag=expected_etag,
                ) from exc
            if error_code(exc) == _NOT_FOUND:
                raise NotFoundError(f"KeyValueStore not found: {self._kvs_arn}") from exc
            raise store_error(f"PutKey {self._key}", exc) from exc
        except BotoCoreError as exc:
            raise store_error(f"PutKey {self._key}", exc) from exc
        return str(response.get("ETag", ""))

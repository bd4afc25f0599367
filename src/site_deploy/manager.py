"""
site_deploy.manager — Immutable site deployments with a switchable pointer.

Deploying and publishing are separate steps: deploy_version stages a
version's artifacts without touching the pointer, update_current_version
flips the pointer without uploading anything.

Known limitation: list_versions returns versions in S3 listing order, which
is lexical.  cleanup_old_versions keeps the tail of that list, so version
names that do not sort chronologically can cause a newer version to be
deleted before an older one.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from aws_lambda_powertools import Logger
from botocore.exceptions import BotoCoreError, ClientError

from site_deploy.clients import store_error
from site_deploy.exceptions import CleanupError, NotFoundError, StoreError, ValidationError
from site_deploy.files import walk_files
from site_deploy.models import (
    ARTIFACTS_PREFIX,
    DEFAULT_KEEP_COUNT,
    DELETE_BATCH_LIMIT,
    KEY_DELIMITER,
    UPLOAD_BATCH_SIZE,
    DeploymentConfig,
    DeploymentStatus,
    validate_version,
    version_prefix,
)
from site_deploy.pointer import VersionPointerStore
from site_deploy.uploader import ArtifactUploader

# Command output goes to stdout; keep structured logs on stderr.
logger = Logger(service="site-deploy", logger_handler=logging.StreamHandler(sys.stderr))


class DeploymentManager:
    """
    Deploy, publish, roll back, list and prune versions of a static site.

    Both clients are injected; use site_deploy.clients.build_clients to
    create real ones.
    """

    def __init__(
        self,
        config: DeploymentConfig,
        *,
        s3_client: Any,
        kvs_client: Any,
        batch_size: int = UPLOAD_BATCH_SIZE,
    ) -> None:
        self._config = config
        self._s3 = s3_client
        self._uploader = ArtifactUploader(
            s3_client,
            bucket_name=config.bucket_name,
            error_page_path=config.error_page_path,
            batch_size=batch_size,
        )
        self._pointer = VersionPointerStore(kvs_client, kvs_arn=config.key_value_store_arn)

    @property
    def config(self) -> DeploymentConfig:
        return self._config

    def deploy_version(self, version: str, local_path: str | Path) -> list[str]:
        """Upload local_path under artifacts/{version}/.  Returns the keys written."""
        validate_version(version)
        root = Path(local_path).absolute()
        if not root.exists():
            raise NotFoundError(f"Local path does not exist: {root}")

        logger.info("Deploying version to S3", version=version, bucket=self._config.bucket_name)
        files = walk_files(root)
        logger.info("Found files to upload", version=version, count=len(files))

        keys = self._uploader.upload(version, root, files)
        logger.info("Deployed version", version=version, objects=len(keys))
        return keys

    def update_current_version(self, version: str) -> None:
        validate_version(version)
        logger.info("Updating current version", version=version)
        state = self._pointer.read()
        self._pointer.write(version, state.etag)
        logger.info("Updated current version", version=version, previous=state.version)

    def rollback_to_version(self, version: str) -> None:
        """Point the site at a previously deployed version.

        The target's artifacts are not checked; rolling back to a pruned
        version succeeds and the edge serves missing objects.
        """
        logger.info("Rolling back", version=version)
        self.update_current_version(version)

    def current_version(self) -> str | None:
        return self._pointer.read().version

    def list_versions(self) -> list[str]:
        """Return deployed versions in S3 listing order (lexical, not chronological)."""
        bucket = self._config.bucket_name
        versions: list[str] = []
        mirror_dir = self._error_page_dir()
        try:
            paginator = self._s3.get_paginator("list_objects_v2")
            for page in paginator.paginate(
                Bucket=bucket,
                Prefix=ARTIFACTS_PREFIX,
                Delimiter=KEY_DELIMITER,
            ):
                for common in page.get("CommonPrefixes", []):
                    version = common["Prefix"][len(ARTIFACTS_PREFIX) :].rstrip(KEY_DELIMITER)
                    if version and version != mirror_dir:
                        versions.append(version)
        except (ClientError, BotoCoreError) as exc:
            raise store_error(f"Listing s3://{bucket}/{ARTIFACTS_PREFIX}", exc) from exc
        logger.info("Deployed versions", versions=versions)
        return versions

    def _error_page_dir(self) -> str | None:
        # A nested error page mirror such as artifacts/errors/404.html lists as a prefix.
        error_page_path = self._config.error_page_path
        if not error_page_path or KEY_DELIMITER not in error_page_path:
            return None
        return error_page_path.split(KEY_DELIMITER, 1)[0]

    def cleanup_old_versions(self, keep_count: int = DEFAULT_KEEP_COUNT) -> list[str]:
        """Delete all but the last keep_count listed versions.

        Returns the deleted versions.  Failure part way raises CleanupError
        with the versions already deleted; nothing is restored.
        """
        if keep_count < 0:
            raise ValidationError(f"keep_count must be >= 0, got {keep_count}")
        logger.info("Cleaning up old versions", keep=keep_count)

        versions = self.list_versions()
        doomed = versions[: max(0, len(versions) - keep_count)]
        deleted: list[str] = []
        for version in doomed:
            try:
                removed = self._delete_version(version)
            except StoreError as exc:
                raise CleanupError(
                    f"Cleanup stopped at version {version} after deleting "
                    f"{len(deleted)} of {len(doomed)}: {exc}",
                    deleted_versions=deleted,
                    error_code=exc.error_code,
                ) from exc
            deleted.append(version)
            logger.info("Deleted version", version=version, objects=removed)

        logger.info("Cleaned up old versions", deleted=len(deleted))
        return deleted

    def status(self) -> DeploymentStatus:
        return DeploymentStatus(
            bucket_name=self._config.bucket_name,
            distribution_id=self._config.distribution_id,
            region=self._config.region,
            versions=self.list_versions(),
            current_version=self.current_version(),
        )

    def _version_keys(self, version: str) -> Iterator[str]:
        paginator = self._s3.get_paginator("list_objects_v2")
        for page in paginator.paginate(
            Bucket=self._config.bucket_name,
            Prefix=version_prefix(version),
        ):
            for obj in page.get("Contents", []):
                yield obj["Key"]

    def _delete_version(self, version: str) -> int:
        bucket = self._config.bucket_name
        try:
            keys = list(self._version_keys(version))
            for start in range(0, len(keys), DELETE_BATCH_LIMIT):
                chunk = keys[start : start + DELETE_BATCH_LIMIT]
                response = self._s3.delete_objects(
                    Bucket=bucket,
                    Delete={"Objects": [{"Key": key} for key in chunk], "Quiet": True},
                )
                errors = response.get("Errors", [])
                if errors:
                    first = errors[0]
                    raise StoreError(
                        f"DeleteObjects reported {len(errors)} failures for version {version}, "
                        f"first {first.get('Key')}: {first.get('Code')} {first.get('Message')}",
                        error_code=first.get("Code"),
                    )
        except (ClientError, BotoCoreError) as exc:
            raise store_error(f"Deleting version {version} from s3://{bucket}", exc) from exc
        return len(keys)

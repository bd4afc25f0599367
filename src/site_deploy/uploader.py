"""
site_deploy.uploader — Batched artifact upload to S3.

Files are uploaded in fixed-size batches.  Batches run one after another;
uploads inside a batch run concurrently on a thread pool sized to the batch.
The first failed upload fails the batch and the whole deploy.  Objects that
were already written stay in the bucket.
"""

from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Any

from aws_lambda_powertools import Logger
from botocore.exceptions import BotoCoreError, ClientError

from site_deploy.clients import store_error
from site_deploy.content_types import content_type_for
from site_deploy.exceptions import ValidationError
from site_deploy.models import UPLOAD_BATCH_SIZE, artifact_key, error_page_key

logger = Logger(service="site-deploy", child=True)


class ArtifactUploader:
    """
    Uploads a local content tree under artifacts/{version}/.

    If error_page_path matches a file's relative path, the same bytes are also
    written to artifacts/{error_page_path} so the edge can serve the latest
    error page regardless of which version is live.
    """

    def __init__(
        self,
        s3_client: Any,
        *,
        bucket_name: str,
        error_page_path: str | None = None,
        batch_size: int = UPLOAD_BATCH_SIZE,
    ) -> None:
        if batch_size < 1:
            raise ValidationError(f"batch_size must be positive, got {batch_size!r}")
        self._s3 = s3_client
        self._bucket = bucket_name
        self._error_page_path = error_page_path
        self._batch_size = batch_size

    def upload(self, version: str, root: Path, files: Sequence[Path]) -> list[str]:
        """Upload files and return the object keys written, in batch order."""
        batches = [
            list(files[i : i + self._batch_size]) for i in range(0, len(files), self._batch_size)
        ]
        written: list[str] = []
        with ThreadPoolExecutor(max_workers=self._batch_size) as pool:
            for index, batch in enumerate(batches, start=1):
                written.extend(self._upload_batch(pool, version, root, batch))
                logger.info(
                    "Uploaded batch",
                    version=version,
                    batch=index,
                    batches=len(batches),
                    files=len(batch),
                )
        return written

    def _upload_batch(
        self,
        pool: ThreadPoolExecutor,
        version: str,
        root: Path,
        batch: list[Path],
    ) -> list[str]:
        futures: list[Future[list[str]]] = [
            pool.submit(self._upload_file, version, root, path) for path in batch
        ]
        done, _pending = wait(futures, return_when=FIRST_EXCEPTION)
        for future in futures:
            if future in done:
                error = future.exception()
                if error is not None:
                    raise error
        return [key for future in futures for key in future.result()]

    def _upload_file(self, version: str, root: Path, path: Path) -> list[str]:
        relative_path = path.relative_to(root).as_posix()
        body = path.read_bytes()
        content_type = content_type_for(path)

        key = artifact_key(version, relative_path)
        self._put(key, body, content_type)
        keys = [key]

        if self._error_page_path and relative_path == self._error_page_path:
            mirror_key = error_page_key(self._error_page_path)
            logger.info("Deploying error page to dedicated path", key=mirror_key)
            self._put(mirror_key, body, content_type)
            keys.append(mirror_key)
        return keys

    def _put(self, key: str, body: bytes, content_type: str) -> None:
        try:
            self._s3.put_object(
                Bucket=self._bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as exc:
            raise store_error(f"Upload of s3://{self._bucket}/{key}", exc) from exc

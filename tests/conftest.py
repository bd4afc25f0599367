"""Shared fixtures: moto-backed S3 and an in-memory CloudFront KeyValueStore client."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import Any

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

REGION = "eu-west-2"
BUCKET = "site-artifacts"
KVS_ARN = "arn:aws:cloudfront::123456789012:key-value-store/0f1e2d3c-site-version-store"
DISTRIBUTION_ID = "E2EXAMPLE123"


def _client_error(code: str, operation: str, message: str = "") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message or code}}, operation)


class FakeKeyValueStoreClient:
    """
    In-memory stand-in for boto3's cloudfront-keyvaluestore client.

    Every successful PutKey bumps the store ETag, and PutKey rejects a stale
    IfMatch with ConflictException, like the real service.

    Set race_after_describe to simulate another writer updating the store
    right after this client's DescribeKeyValueStore call.
    """

    def __init__(self, *, arn: str = KVS_ARN, exists: bool = True) -> None:
        self.arn = arn
        self.exists = exists
        self.items: dict[str, str] = {}
        self.generation = 1
        self.race_after_describe = False
        self.put_calls: list[dict[str, Any]] = []

    @property
    def etag(self) -> str:
        return f"ETAG{self.generation:04d}"

    def _check_store(self, kvs_arn: str, operation: str) -> None:
        if not self.exists or kvs_arn != self.arn:
            raise _client_error("ResourceNotFoundException", operation)

    def describe_key_value_store(self, *, KvsARN: str) -> dict[str, Any]:
        self._check_store(KvsARN, "DescribeKeyValueStore")
        response = {"KvsARN": KvsARN, "ETag": self.etag, "ItemCount": len(self.items)}
        if self.race_after_describe:
            self.items["current-version"] = "written-by-someone-else"
            self.generation += 1
        return response

    def get_key(self, *, KvsARN: str, Key: str) -> dict[str, Any]:
        self._check_store(KvsARN, "GetKey")
        if Key not in self.items:
            raise _client_error("ResourceNotFoundException", "GetKey")
        return {"Key": Key, "Value": self.items[Key], "ItemCount": len(self.items)}

    def put_key(self, *, KvsARN: str, Key: str, Value: str, IfMatch: str) -> dict[str, Any]:
        self._check_store(KvsARN, "PutKey")
        self.put_calls.append({"Key": Key, "Value": Value, "IfMatch": IfMatch})
        if IfMatch != self.etag:
            raise _client_error("ConflictException", "PutKey", "Pre-condition failed")
        self.items[Key] = Value
        self.generation += 1
        return {"ETag": self.etag, "ItemCount": len(self.items)}


@pytest.fixture(autouse=True)
def aws_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set minimal AWS env vars required by boto3 and moto."""
    monkeypatch.setenv("AWS_REGION", REGION)
    monkeypatch.setenv("AWS_DEFAULT_REGION", REGION)
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.delenv("SITE_DEPLOY_CONFIG", raising=False)


@pytest.fixture
def s3() -> Iterator[Any]:
    with mock_aws():
        client = boto3.client("s3", region_name=REGION)
        client.create_bucket(
            Bucket=BUCKET,
            CreateBucketConfiguration={"LocationConstraint": REGION},
        )
        yield client


@pytest.fixture
def kvs() -> FakeKeyValueStoreClient:
    return FakeKeyValueStoreClient()


@pytest.fixture
def site_dir(tmp_path: Path) -> Path:
    """Local tree {index.html, 404.html, css/app.css}."""
    root = tmp_path / "site"
    (root / "css").mkdir(parents=True)
    (root / "index.html").write_text("<h1>home</h1>", encoding="utf-8")
    (root / "404.html").write_text("<h1>not found</h1>", encoding="utf-8")
    (root / "css" / "app.css").write_text("body { margin: 0; }", encoding="utf-8")
    return root


def object_keys(s3_client: Any, prefix: str = "") -> set[str]:
    response = s3_client.list_objects_v2(Bucket=BUCKET, Prefix=prefix)
    return {obj["Key"] for obj in response.get("Contents", [])}

"""
site_deploy.clients — boto3 client construction and botocore error mapping.

CloudFront KeyValueStore is a global service fronted from us-east-1 and only
accepts SigV4A (multi-region) signatures.  botocore signs SigV4A through the
AWS CRT extension, so availability is checked once when the clients are
built rather than on every call.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import boto3
from botocore.compat import HAS_CRT
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from site_deploy.exceptions import StoreError, ValidationError
from site_deploy.models import DeploymentConfig

KVS_REGION = "us-east-1"
SIGV4A = "v4a"


@dataclass(frozen=True)
class DeploymentClients:
    s3: Any
    kvs: Any


def resolve_kvs_signature_version(*, crt_available: bool | None = None) -> str:
    """Return the signature version for KeyValueStore calls.

    Raises ValidationError when the CRT-backed SigV4A signer is not installed.
    """
    if crt_available is None:
        crt_available = HAS_CRT
    if not crt_available:
        raise ValidationError(
            "CloudFront KeyValueStore requires SigV4A signing; "
            "install the CRT extension with `pip install boto3[crt]`"
        )
    return SIGV4A


def build_clients(config: DeploymentConfig, *, session: Any = None) -> DeploymentClients:
    """Create the S3 and KeyValueStore clients for a deployment config."""
    signature_version = resolve_kvs_signature_version()
    boto_session = session or boto3.session.Session()
    s3 = boto_session.client("s3", region_name=config.region)
    kvs = boto_session.client(
        "cloudfront-keyvaluestore",
        region_name=KVS_REGION,
        config=Config(signature_version=signature_version),
    )
    return DeploymentClients(s3=s3, kvs=kvs)


def error_code(exc: BaseException) -> str | None:
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code")
    return None


def store_error(action: str, exc: ClientError | BotoCoreError) -> StoreError:
    """Wrap a botocore failure in a StoreError describing the failed action."""
    code = error_code(exc)
    detail = f"{code}: {exc}" if code else str(exc)
    return StoreError(f"{action} failed ({detail})", error_code=code)

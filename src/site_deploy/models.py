"""
site_deploy.models — Object key layout, configuration and pointer state.

Key layout in the artifacts bucket:
    artifacts/{version}/{relative_path}   versioned artifact (immutable)
    artifacts/{error_page_path}           mirrored error page (latest deploy wins)

KeyValueStore:
    current-version                       live version read by the edge function
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

from site_deploy.exceptions import ValidationError

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
ARTIFACTS_PREFIX = "artifacts/"
KEY_DELIMITER = "/"
CURRENT_VERSION_KEY = "current-version"
DEFAULT_REGION = "us-east-1"
UPLOAD_BATCH_SIZE = 10
DEFAULT_KEEP_COUNT = 5
# S3 DeleteObjects accepts at most 1000 keys per request.
DELETE_BATCH_LIMIT = 1000


@dataclass(frozen=True)
class DeploymentConfig:
    """Deployment target.  Immutable for the lifetime of the process."""

    bucket_name: str
    key_value_store_arn: str
    distribution_id: str
    region: str = DEFAULT_REGION
    error_page_path: str | None = None

    def __post_init__(self) -> None:
        missing = [
            name
            for name in ("bucket_name", "key_value_store_arn", "distribution_id")
            if not getattr(self, name)
        ]
        if missing:
            raise ValidationError(f"Missing required configuration: {', '.join(missing)}")
        if self.error_page_path is not None:
            normalized = self.error_page_path.strip().lstrip(KEY_DELIMITER)
            object.__setattr__(self, "error_page_path", normalized or None)


@dataclass(frozen=True)
class PointerState:
    """Current-version pointer as last observed.

    version is None when the store exists but the pointer was never written.
    etag is the store-level ETag that must be presented on the next write.
    """

    version: str | None
    etag: str


@dataclass(frozen=True)
class DeploymentStatus:
    bucket_name: str
    distribution_id: str
    region: str
    versions: list[str] = field(default_factory=list)
    current_version: str | None = None

    @property
    def latest_version(self) -> str | None:
        # Last entry in store listing order, not necessarily the newest.
        return self.versions[-1] if self.versions else None


def generate_version(now: datetime | None = None) -> str:
    """Return a UTC timestamp version such as ``2026-01-01T12-00-00``."""
    current = (now or datetime.now(UTC)).astimezone(UTC)
    return current.strftime("%Y-%m-%dT%H-%M-%S")


def validate_version(version: str) -> str:
    if not version or not version.strip():
        raise ValidationError("Version must be a non-empty string")
    if KEY_DELIMITER in version:
        raise ValidationError(f"Version must not contain {KEY_DELIMITER!r}: {version!r}")
    return version


def version_prefix(version: str) -> str:
    return f"{ARTIFACTS_PREFIX}{version}{KEY_DELIMITER}"


def artifact_key(version: str, relative_path: str) -> str:
    return f"{version_prefix(version)}{relative_path}"


def error_page_key(error_page_path: str) -> str:
    return f"{ARTIFACTS_PREFIX}{error_page_path}"

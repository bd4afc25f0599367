"""
site_deploy — Immutable static site deployments on S3 + CloudFront KeyValueStore.

Artifacts are uploaded under artifacts/{version}/ and the edge reads the live
version from the current-version key.  Switching or rolling back is a single
conditional write of that key.
"""

from site_deploy.exceptions import (
    CleanupError,
    ConflictError,
    DeployError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from site_deploy.manager import DeploymentManager
from site_deploy.models import DeploymentConfig, PointerState, generate_version

__all__ = [
    "CleanupError",
    "ConflictError",
    "DeployError",
    "DeploymentConfig",
    "DeploymentManager",
    "NotFoundError",
    "PointerState",
    "StoreError",
    "ValidationError",
    "generate_version",
]

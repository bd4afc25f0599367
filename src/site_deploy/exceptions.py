"""
site_deploy.exceptions — Domain errors raised by the deployment library.

Every boto3/botocore failure is re-raised as a StoreError (or a subclass)
with the original exception chained, so callers only need to handle the
types defined here.
"""

from __future__ import annotations


class DeployError(RuntimeError):
    """Base class for site deployment errors."""


class ValidationError(DeployError):
    """Raised for missing or invalid configuration and arguments."""


class NotFoundError(DeployError):
    """Raised when a local path, a config file or a remote store is absent."""


class ConflictError(DeployError):
    """
    Raised when the current-version pointer was modified between read and write.

    Attributes:
        expected_etag: The ETag presented on the conditional write.
    """

    def __init__(self, message: str, *, expected_etag: str) -> None:
        super().__init__(message)
        self.expected_etag = expected_etag


class StoreError(DeployError):
    """
    Raised when an object store or key-value store call fails.

    Attributes:
        error_code: AWS error code (e.g. "AccessDenied") when the failure came
                    from the service, None for transport or client-side errors.
    """

    def __init__(self, message: str, *, error_code: str | None = None) -> None:
        super().__init__(message)
        self.error_code = error_code


class CleanupError(StoreError):
    """Raised when cleanup fails after some versions were already deleted."""

    def __init__(
        self,
        message: str,
        *,
        deleted_versions: list[str],
        error_code: str | None = None,
    ) -> None:
        super().__init__(message, error_code=error_code)
        self.deleted_versions = deleted_versions

"""
site_deploy.config — Resolve DeploymentConfig from a JSON file or CLI flags.

Precedence: an existing config file wins outright and the connection flags
are ignored.  Without one, --bucket, --kv-store and --distribution are all
required.

Config file format (flat JSON object):
    {
      "bucketName": "my-site-artifacts",
      "keyValueStoreArn": "arn:aws:cloudfront::123456789012:key-value-store/...",
      "distributionId": "E123EXAMPLE",
      "region": "eu-west-2",
      "errorPagePath": "404.html"
    }
"""

from __future__ import annotations

import argparse
import json
import os
from pathlib import Path
from typing import Any

from site_deploy.exceptions import ValidationError
from site_deploy.models import DEFAULT_REGION, DeploymentConfig

CONFIG_ENV_VAR = "SITE_DEPLOY_CONFIG"

_REQUIRED_FILE_FIELDS = ("bucketName", "keyValueStoreArn", "distributionId")
_OPTIONAL_FILE_FIELDS = ("region", "errorPagePath")
_REQUIRED_FLAGS = {
    "bucket": "--bucket",
    "kv_store": "--kv-store",
    "distribution": "--distribution",
}


def resolve_config_path(explicit: str | None) -> Path | None:
    raw = explicit or os.environ.get(CONFIG_ENV_VAR, "").strip()
    if not raw:
        return None
    return Path(raw).expanduser().resolve()


def load_config_file(path: Path) -> DeploymentConfig:
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Invalid JSON in config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValidationError(f"Config file must contain a JSON object: {path}")

    not_strings = [
        name
        for name in (*_REQUIRED_FILE_FIELDS, *_OPTIONAL_FILE_FIELDS)
        if data.get(name) is not None and not isinstance(data[name], str)
    ]
    if not_strings:
        raise ValidationError(
            f"Config file {path} has non-string values for: {', '.join(not_strings)}"
        )

    missing = [name for name in _REQUIRED_FILE_FIELDS if not (data.get(name) or "").strip()]
    if missing:
        raise ValidationError(f"Config file {path} is missing: {', '.join(missing)}")

    return DeploymentConfig(
        bucket_name=data["bucketName"].strip(),
        key_value_store_arn=data["keyValueStoreArn"].strip(),
        distribution_id=data["distributionId"].strip(),
        region=(data.get("region") or DEFAULT_REGION).strip(),
        error_page_path=data.get("errorPagePath") or None,
    )


def load_config(args: argparse.Namespace) -> DeploymentConfig:
    """Build the deployment config from parsed global CLI options."""
    config_path = resolve_config_path(getattr(args, "config", None))
    if config_path is not None and config_path.is_file():
        return load_config_file(config_path)

    missing = [flag for attr, flag in _REQUIRED_FLAGS.items() if not getattr(args, attr, None)]
    if missing:
        raise ValidationError(
            f"Missing required options: {', '.join(missing)}. "
            "Or use --config to specify a configuration file."
        )
    return DeploymentConfig(
        bucket_name=args.bucket,
        key_value_store_arn=args.kv_store,
        distribution_id=args.distribution,
        region=args.region or DEFAULT_REGION,
        error_page_path=args.error_page,
    )

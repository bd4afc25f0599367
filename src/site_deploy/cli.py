"""
site-deploy — CLI for immutable static site deployments.

Usage:
    site-deploy [connection options] deploy <path> [--version V] [--no-switch]
    site-deploy [connection options] rollback <version>
    site-deploy [connection options] list
    site-deploy [connection options] cleanup [--keep N]
    site-deploy [connection options] status

Connection options come from --config <file> (or SITE_DEPLOY_CONFIG) or from
--bucket, --kv-store, --distribution, --region and --error-page.  An existing
config file takes precedence over the flags.

Exit codes:
    0  success
    1  deployment, store or local I/O failure
    2  invalid arguments or configuration
"""

from __future__ import annotations

import argparse
import sys

from site_deploy.clients import build_clients
from site_deploy.config import load_config
from site_deploy.exceptions import CleanupError, DeployError, ValidationError
from site_deploy.manager import DeploymentManager
from site_deploy.models import DEFAULT_KEEP_COUNT, DEFAULT_REGION, generate_version


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="site-deploy",
        description="CLI for managing immutable deployments",
    )
    parser.add_argument("-b", "--bucket", default=None, help="S3 bucket name")
    parser.add_argument(
        "-k", "--kv-store", default=None, help="CloudFront Key-Value Store ARN"
    )
    parser.add_argument("-d", "--distribution", default=None, help="CloudFront Distribution ID")
    parser.add_argument("-r", "--region", default=DEFAULT_REGION, help="AWS region")
    parser.add_argument("-c", "--config", default=None, help="Configuration file path")
    parser.add_argument(
        "-e", "--error-page", default=None, help="Relative path to error page file"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    deploy = subparsers.add_parser("deploy", help="Deploy a new version")
    deploy.add_argument("path", help="Local path to deploy")
    deploy.add_argument(
        "-v",
        "--version",
        default=None,
        help="Version to deploy (auto-generated if not provided)",
    )
    deploy.add_argument(
        "--no-switch",
        dest="switch",
        action="store_false",
        help="Deploy but don't switch to new version",
    )

    rollback = subparsers.add_parser("rollback", help="Rollback to a previous version")
    rollback.add_argument("version", help="Version to rollback to")

    subparsers.add_parser("list", help="List all deployed versions")

    cleanup = subparsers.add_parser("cleanup", help="Clean up old versions")
    cleanup.add_argument(
        "-k",
        "--keep",
        type=int,
        default=DEFAULT_KEEP_COUNT,
        help=f"Number of versions to keep (default {DEFAULT_KEEP_COUNT})",
    )

    subparsers.add_parser("status", help="Show current deployment status")
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def _build_manager(args: argparse.Namespace) -> DeploymentManager:
    config = load_config(args)
    clients = build_clients(config)
    return DeploymentManager(config, s3_client=clients.s3, kvs_client=clients.kvs)


def cmd_deploy(args: argparse.Namespace) -> int:
    manager = _build_manager(args)
    version = args.version or generate_version()
    print(f"Deploying version: {version}")
    keys = manager.deploy_version(version, args.path)
    print(f"Uploaded {len(keys)} objects")

    if args.switch:
        print(f"Switching to version: {version}")
        manager.update_current_version(version)
        print(f"Successfully deployed and switched to version: {version}")
    else:
        print(f"Successfully deployed version: {version} (not switched)")
    return 0


def cmd_rollback(args: argparse.Namespace) -> int:
    manager = _build_manager(args)
    print(f"Rolling back to version: {args.version}")
    manager.rollback_to_version(args.version)
    print(f"Successfully rolled back to version: {args.version}")
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    manager = _build_manager(args)
    versions = manager.list_versions()
    if not versions:
        print("No versions found")
        return 0
    print("Deployed versions:")
    for index, version in enumerate(versions, start=1):
        print(f"{index}. {version}")
    return 0


def cmd_cleanup(args: argparse.Namespace) -> int:
    manager = _build_manager(args)
    print(f"Cleaning up old versions, keeping {args.keep}...")
    deleted = manager.cleanup_old_versions(args.keep)
    for version in deleted:
        print(f"Deleted version: {version}")
    print(f"Cleanup completed: {len(deleted)} versions deleted")
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    manager = _build_manager(args)
    status = manager.status()
    print("Deployment Status")
    print(f"Bucket: {status.bucket_name}")
    print(f"Distribution: {status.distribution_id}")
    print(f"Region: {status.region}")
    print(f"Total versions: {len(status.versions)}")
    if status.latest_version is not None:
        print(f"Latest version: {status.latest_version}")
    print(f"Current version: {status.current_version or 'none'}")
    return 0


_COMMANDS = {
    "deploy": cmd_deploy,
    "rollback": cmd_rollback,
    "list": cmd_list,
    "cleanup": cmd_cleanup,
    "status": cmd_status,
}


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    handler = _COMMANDS[args.command]
    try:
        return handler(args)
    except ValidationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2
    except CleanupError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        if exc.deleted_versions:
            print(f"Deleted before failure: {', '.join(exc.deleted_versions)}", file=sys.stderr)
        return 1
    except (DeployError, OSError) as exc:
        print(f"ERROR: {args.command} failed: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())

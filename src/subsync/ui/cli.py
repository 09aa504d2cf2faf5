from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any

from dotenv import load_dotenv

from subsync.app import apply_documents, build_backend, delete_resource, reconcile_subscription
from subsync.config import ConfigurationError, configure_logging
from subsync.domain.model import SUBSCRIPTION_API_VERSION, KReference
from subsync.domain.reconciliation import ReconcileError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "default"

EXIT_FAILED = 1
EXIT_USAGE = 2
EXIT_PERMANENT = 3


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile subscriptions with their channels")
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    apply = subparsers.add_parser("apply", help="Create or replace resources in the local store")
    apply.add_argument(
        "file",
        type=Path,
        help="JSON file holding one object, a list of objects or a List with items",
    )

    delete = subparsers.add_parser("delete", help="Delete a resource from the local store")
    delete.add_argument("kind", type=str, help="Kind of the resource, e.g. Subscription")
    delete.add_argument("name", type=str, help="Name of the resource")
    delete.add_argument(
        "--namespace",
        "-n",
        type=str,
        default=DEFAULT_NAMESPACE,
        help="Namespace of the resource (default: %(default)s)",
    )
    delete.add_argument(
        "--api-version",
        type=str,
        default=SUBSCRIPTION_API_VERSION,
        help="API version of the resource (default: %(default)s)",
    )

    reconcile = subparsers.add_parser("reconcile", help="Run one reconciliation pass")
    reconcile.add_argument("namespace", type=str, help="Namespace of the subscription")
    reconcile.add_argument("name", type=str, help="Name of the subscription")
    reconcile.add_argument(
        "--backend",
        choices=("sqlite", "api"),
        default="sqlite",
        help="Where resources live (default: %(default)s)",
    )

    return parser.parse_args(list(argv))


def _load_documents(path: Path) -> list[dict[str, Any]]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ValueError(f"Cannot read resources from {path}: {exc}") from exc
    if isinstance(payload, dict) and isinstance(payload.get("items"), list):
        payload = payload["items"]
    documents = payload if isinstance(payload, list) else [payload]
    if not all(isinstance(document, dict) for document in documents):
        raise ValueError(f"{path} must contain JSON objects")
    return documents


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        documents = _load_documents(parsed_args.file) if parsed_args.command == "apply" else []
    except ValueError:
        configure_logging()
        log.exception("CLI validation error")
        sys.exit(EXIT_USAGE)

    configure_logging(verbose=parsed_args.verbose)

    try:
        if parsed_args.command == "apply":
            apply_documents(documents)
        elif parsed_args.command == "delete":
            delete_resource(
                KReference(
                    kind=parsed_args.kind,
                    name=parsed_args.name,
                    namespace=parsed_args.namespace,
                    api_version=parsed_args.api_version,
                )
            )
        elif parsed_args.command == "reconcile":
            result = reconcile_subscription(
                parsed_args.namespace,
                parsed_args.name,
                backend=build_backend(parsed_args.backend),
            )
            log.info(
                "Subscription %s/%s ready=%s",
                parsed_args.namespace,
                parsed_args.name,
                result.subscription.status.is_ready(),
            )
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except ReconcileError as exc:
        if exc.permanent:
            log.error("Reconciliation failed permanently: %s: %s", exc.reason, exc.message)
            sys.exit(EXIT_PERMANENT)
        log.warning("Reconciliation did not converge: %s: %s", exc.reason, exc.message)
        sys.exit(EXIT_FAILED)
    except ConfigurationError:
        log.exception("Invalid configuration for %s", parsed_args.command)
        sys.exit(EXIT_USAGE)
    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(EXIT_FAILED)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()

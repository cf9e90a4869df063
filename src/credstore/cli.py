"""Operator CLI for managing access tokens."""

from __future__ import annotations

import argparse
import json
import logging
from collections.abc import Sequence

from credstore.application.credential_store import CredentialStore
from credstore.application.dto.page import TokenPage
from credstore.application.ports.kv_store import KeyValueStorePort
from credstore.config.settings import CredentialStoreSettings, load_settings, log_settings
from credstore.domain.access_token import split_issued_token
from credstore.errors import CredentialStoreError
from credstore.infrastructure.state.memory_kv import InMemoryKeyValueStore
from credstore.infrastructure.state.sqlite_kv import SqliteKeyValueStore
from credstore.observability.logging import configure_logging

logger = logging.getLogger("credstore.cli")


def _open_store(settings: CredentialStoreSettings) -> KeyValueStorePort:
    if settings.backend == "memory":
        return InMemoryKeyValueStore()
    return SqliteKeyValueStore(settings.db_path)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="credstore", description="Manage API access tokens.")
    commands = parser.add_subparsers(dest="command", required=True)

    create = commands.add_parser("create", help="Issue a new access token and print it once.")
    create.add_argument("id", help="Token identifier ([A-Za-z0-9_-]+).")
    create.add_argument("--type", default="", help="Free-form token classification.")

    check = commands.add_parser("check", help="Verify an issued token of the form <id>:<hex secret>.")
    check.add_argument("token")

    listing = commands.add_parser("list", help="List stored access tokens.")
    listing.add_argument("--after", default="", help="Cursor returned by the previous page.")
    listing.add_argument("--limit", type=int, default=None, help="Page size (defaults to the configured size).")
    listing.add_argument(
        "--stable",
        action="store_true",
        help="Page by identifier instead of position.",
    )

    delete = commands.add_parser("delete", help="Delete an access token.")
    delete.add_argument("id")
    return parser


def _print_page(page: TokenPage) -> None:
    for item in page.items:
        print(item.model_dump_json(exclude_defaults=True))
    print(json.dumps({"next": page.next_after, "last_page": page.last_page}))


def _run(args: argparse.Namespace, store: CredentialStore, settings: CredentialStoreSettings) -> int:
    match args.command:
        case "create":
            print(store.create(args.id, args.type))
        case "check":
            token_id, secret = split_issued_token(args.token)
            valid = store.check(token_id, secret)
            print("valid" if valid else "invalid")
            return 0 if valid else 1
        case "list":
            limit = args.limit if args.limit is not None else settings.default_page_size
            if args.stable:
                page = store.list_stable(args.after, limit)
            else:
                page = store.list(args.after, limit, settings.default_page_size)
            _print_page(page)
        case "delete":
            store.delete(args.id)
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    settings = load_settings()
    configure_logging(level=settings.log_level, log_format=settings.log_format)
    log_settings(settings)
    kv = _open_store(settings)
    try:
        code = _run(args, CredentialStore(kv), settings)
    except CredentialStoreError as exc:
        logger.debug("command failed", extra={"data": {"command": args.command}}, exc_info=exc)
        raise SystemExit(str(exc)) from exc
    finally:
        if isinstance(kv, SqliteKeyValueStore):
            kv.close()
    if code:
        raise SystemExit(code)


__all__ = ["main"]


if __name__ == "__main__":  # pragma: no cover
    main()

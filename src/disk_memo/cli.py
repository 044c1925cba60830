from __future__ import annotations

import argparse
import json

from disk_memo.cache.store import Store
from disk_memo.config import load_settings
from disk_memo.errors import PathNotWritable
from disk_memo.logging import configure_logging


def _store() -> Store:
    try:
        settings = load_settings()
    except PathNotWritable as e:
        raise SystemExit(str(e))
    configure_logging(settings.log_level)
    return Store.from_settings(settings)


def _cmd_get(args: argparse.Namespace) -> None:
    result = _store().get(args.key, use_expiry=not args.no_expiry)
    print(f"status={result.status}")
    if not result.hit:
        raise SystemExit(1)
    print(json.dumps(result.content, ensure_ascii=False, indent=2, default=repr))


def _cmd_delete(args: argparse.Namespace) -> None:
    _store().delete(args.key)


def _cmd_delete_group(args: argparse.Namespace) -> None:
    removed = _store().delete_group(args.group, prefix_only=args.prefix)
    print(f"removed={removed}")


def _cmd_clear(args: argparse.Namespace) -> None:
    removed = _store().delete_all(args.subdir)
    print(f"removed={removed}")


def _cmd_keys(args: argparse.Namespace) -> None:
    for key in _store().keys(args.subdir):
        print(key)


def main(argv: list[str] | None = None) -> None:
    p = argparse.ArgumentParser(prog="disk-memo")
    sub = p.add_subparsers(dest="cmd", required=True)

    pg = sub.add_parser("get", help="Print a cached record (exit 1 when not cached).")
    pg.add_argument("key", type=str)
    pg.add_argument("--no-expiry", action="store_true", help="Return the record even if it has expired.")
    pg.set_defaults(func=_cmd_get)

    pd = sub.add_parser("delete", help="Delete one record.")
    pd.add_argument("key", type=str)
    pd.set_defaults(func=_cmd_delete)

    pgr = sub.add_parser("delete-group", help="Delete every record whose key contains GROUP.")
    pgr.add_argument("group", type=str)
    pgr.add_argument("--prefix", action="store_true", help="Only match keys starting with GROUP.")
    pgr.set_defaults(func=_cmd_delete_group)

    pc = sub.add_parser("clear", help="Delete all records, or all records under SUBDIR.")
    pc.add_argument("subdir", type=str, nargs="?", default="")
    pc.set_defaults(func=_cmd_clear)

    pk = sub.add_parser("keys", help="List record keys.")
    pk.add_argument("subdir", type=str, nargs="?", default="")
    pk.set_defaults(func=_cmd_keys)

    args = p.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()

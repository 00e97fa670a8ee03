"""Utility CLI for browsing and moderating the hotel dataset."""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
from typing import Optional

from yisu_hotels.config.settings import Settings
from yisu_hotels.core.envelope import OperationResult
from yisu_hotels.core.logging import configure_logging
from yisu_hotels.platform import HotelPlatform
from yisu_hotels.storage.seed import default_snapshot

MODERATION_ACTIONS = ("approve", "reject", "offline", "restore")


def _print_result(result: OperationResult) -> int:
    print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    return 0 if result.ok else 1


def _format_hotel(entry: dict[str, object]) -> str:
    rooms = entry.get("room_options") or []
    cheapest = min((room["price"] for room in rooms), default=0)  # type: ignore[index]
    return (
        f"{entry['id']:6} | {str(entry['status']):9} | {entry['star_rating']}* | "
        f"from {cheapest:>6} | {entry['display_name']}"
    )


async def _login(platform: HotelPlatform, username: Optional[str], password: Optional[str]) -> Optional[str]:
    if not username:
        return None
    result = await platform.login(username, password)
    if not result.ok:
        raise SystemExit(f"Login failed: {result.message}")
    return result.data["token"]


async def _run(args: argparse.Namespace, settings: Settings) -> int:
    platform = await HotelPlatform.start(settings)

    if args.command == "reset":
        await platform.repository.replace(default_snapshot(platform.hasher.hash))
        print(f"Seed dataset written to {settings.storage_path()}")
        return 0

    token = await _login(platform, args.username, args.password)

    if args.command == "search":
        query = {
            "keyword": args.keyword,
            "city": args.city,
            "star_level": args.stars,
            "tags": args.tags,
            "min_price": args.min_price,
            "max_price": args.max_price,
            "check_in": args.check_in,
            "check_out": args.check_out,
            "page": args.page,
            "page_size": args.page_size,
            "manage": args.manage,
        }
        result = await platform.search(query, token)
        if args.json or not result.ok:
            return _print_result(result)
        pricing = result.data["pricing"]
        print(
            f"{result.data['total']} hotels (page {result.data['page']}, "
            f"multiplier {pricing['multiplier']})"
        )
        for entry in result.data["list"]:
            print(_format_hotel(entry))
        return 0

    if args.command == "detail":
        query = {"check_in": args.check_in, "check_out": args.check_out}
        return _print_result(await platform.detail(args.hotel_id, query, token))

    if args.command == "review":
        query = {"status": args.status, "keyword": args.keyword, "page": args.page}
        return _print_result(await platform.review_list(query, token))

    if args.command == "reject":
        return _print_result(await platform.reject(args.hotel_id, args.reason, token))

    action = getattr(platform, args.command)
    return _print_result(await action(args.hotel_id, token))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect and moderate hotel listings.")
    parser.add_argument("--username", help="Log in as this account before running the command.")
    parser.add_argument("--password", help="Password for --username.")
    parser.add_argument("--log-level", default=None, help="Override the configured log level.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("reset", help="Overwrite storage with the demo dataset.")

    search = subparsers.add_parser("search", help="Search hotels with optional filters.")
    search.add_argument("--keyword")
    search.add_argument("--city")
    search.add_argument("--stars", help="Comma-separated star ratings, e.g. '4,5'.")
    search.add_argument("--tags", help="Comma-separated amenity tags.")
    search.add_argument("--min-price", type=float)
    search.add_argument("--max-price", type=float)
    search.add_argument("--check-in", help="YYYY-MM-DD")
    search.add_argument("--check-out", help="YYYY-MM-DD")
    search.add_argument("--page", type=int, default=1)
    search.add_argument("--page-size", type=int, default=None)
    search.add_argument(
        "--manage",
        action="store_true",
        help="Management view: own hotels for merchants, every hotel for admins.",
    )
    search.add_argument("--json", action="store_true", help="Print the raw result envelope.")

    detail = subparsers.add_parser("detail", help="Show one hotel with priced room options.")
    detail.add_argument("hotel_id")
    detail.add_argument("--check-in")
    detail.add_argument("--check-out")

    review = subparsers.add_parser("review", help="Admin review list across every status.")
    review.add_argument("--status", choices=("pending", "approved", "rejected", "offline"))
    review.add_argument("--keyword")
    review.add_argument("--page", type=int, default=1)

    for action in MODERATION_ACTIONS:
        moderation = subparsers.add_parser(action, help=f"{action.capitalize()} a hotel (admin only).")
        moderation.add_argument("hotel_id")
        if action == "reject":
            moderation.add_argument("--reason", default="")

    return parser


def main() -> None:
    args = _build_parser().parse_args()
    settings = Settings()
    configure_logging(args.log_level or settings.log_level, settings.log_dir)
    logging.getLogger(__name__).debug("Running %s against %s", args.command, settings.storage_path())
    raise SystemExit(asyncio.run(_run(args, settings)))


if __name__ == "__main__":
    main()

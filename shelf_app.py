#!/usr/bin/env python3
"""
Discogs 33⅓ LP Shelf Sorter

Fetches your Discogs collection, filters to Vinyl LPs at 33⅓ RPM (or 7" 45s,
or CDs), normalizes artist/title for sorting (strips leading articles and
Discogs numeric suffixes like "(2)"), and writes a printable shelf order
(TXT) plus a CSV and optionally JSON.

Credential discovery order:
- CLI: --token
- Environment: DISCOGS_TOKEN
- Environment: DISCOGS_CONSUMER_KEY/SECRET + DISCOGS_OAUTH_TOKEN/TOKEN_SECRET
- Optional .env file

Usage examples:
  python shelf_app.py --user-agent "VinylShelf/0.3 (you@example.com)"
  python shelf_app.py --various-policy last --articles-extra "le,la,les,el,los,las,der,die,das"
  python shelf_app.py --media 45 --sort-by year --json
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from vinylshelf import __version__
from vinylshelf.api import fetch_prices_for_rows, get_identity
from vinylshelf.auth import credential_from_env, open_session
from vinylshelf.collection import FilterStats, collect_rows, collect_wantlist_rows
from vinylshelf.errors import ConfigError, FetchFailed, exit_code_for_exception
from vinylshelf.export import write_csv, write_json, write_txt
from vinylshelf.formats import MEDIA_LABELS
from vinylshelf.models import SORT_BY_CHOICES, VARIOUS_POLICY_CHOICES, ReleaseRow
from vinylshelf.settings import (
    CollectionSettings,
    default_config_path,
    load_environment,
    load_settings,
    parse_articles,
)
from vinylshelf.sorting import section_rows, sort_rows

OUTPUT_PREFIXES = {"lp": "vinyl", "45": "vinyl45", "cd": "cd", "wantlist": "wantlist"}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Discogs LP shelf sorter")
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
        help="Show program's version number and exit.",
    )
    parser.add_argument(
        "--token",
        help="Discogs Personal Access Token. If omitted, reads DISCOGS_TOKEN or the OAuth variables.",
    )
    parser.add_argument(
        "--user-agent",
        help="User-Agent header per Discogs API policy (include a way to contact you).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Settings JSON file (default: ~/.config/vinylshelf/settings.json).",
    )
    parser.add_argument(
        "--media",
        choices=["lp", "45", "cd"],
        default="lp",
        help="Which media to list: 33⅓ LPs, 7\" 45 RPM singles, or CDs.",
    )
    parser.add_argument(
        "--wantlist",
        action="store_true",
        help="List your want list instead of your collection (no format filter).",
    )
    parser.add_argument(
        "--sort-by",
        choices=SORT_BY_CHOICES,
        default=None,
        help="Shelf order: artist, title, year, or lowest marketplace price (needs --prices).",
    )
    parser.add_argument(
        "--various-policy",
        choices=VARIOUS_POLICY_CHOICES,
        default=None,
        help="How to treat 'Various' artists when sorting: normal sort, push to end, or group compilations by title.",
    )
    parser.add_argument(
        "--articles-extra",
        default=None,
        help="Comma-separated extra leading articles to strip for sorting (e.g., 'le,la,les,el,los,las,der,die,das').",
    )
    parser.add_argument(
        "--output-dir",
        default=".",
        help="Directory where outputs are written (vinyl_shelf_order.txt/.csv).",
    )
    parser.add_argument(
        "--dividers",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Insert letter dividers (=== A ===) in the TXT output (settings default: on).",
    )
    parser.add_argument(
        "--sections",
        action="store_true",
        help="Print how many records fall under each shelf letter.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Also write a JSON export (vinyl_shelf_order.json).",
    )
    parser.add_argument(
        "--prices",
        action="store_true",
        help="Look up the lowest marketplace price of every release (one request each; slow).",
    )
    parser.add_argument(
        "--currency",
        default=None,
        help="Currency for --prices (default USD).",
    )
    parser.add_argument(
        "--txt-align",
        action="store_true",
        help="Align artist and title columns in TXT output for easier scanning.",
    )
    parser.add_argument(
        "--show-country",
        action="store_true",
        help="Include country code at end of TXT lines if present.",
    )
    parser.add_argument(
        "--max-pages",
        type=int,
        default=None,
        help="Optional safety cap for number of collection pages to fetch.",
    )
    parser.add_argument(
        "--per-page",
        type=int,
        default=None,
        help="Items per page for API pagination (max 100).",
    )
    parser.add_argument(
        "--lp-strict",
        action="store_true",
        default=None,
        help="Require LP/Album plus explicit 33 RPM in format descriptions.",
    )
    parser.add_argument(
        "--debug-stats",
        action="store_true",
        help="Print summary stats about how many items were filtered out by format checks.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log API requests and retries.",
    )
    return parser.parse_args(argv)


def resolve_settings(args: argparse.Namespace) -> CollectionSettings:
    settings = load_settings(args.config or default_config_path())
    return settings.with_overrides(
        sort_by=args.sort_by,
        various_policy=args.various_policy,
        extra_articles=parse_articles(args.articles_extra) if args.articles_extra is not None else None,
        per_page=args.per_page,
        max_pages=args.max_pages,
        user_agent=args.user_agent,
        currency=args.currency,
        lp_strict=args.lp_strict,
        show_dividers=args.dividers,
    )


def fetch_and_report_rows(args, session, username, settings) -> List[ReleaseRow]:
    if args.wantlist:
        print(f"Fetching want list for user '{username}'...")
        return collect_wantlist_rows(session, username, settings, progress=print)

    stats = FilterStats()
    print(f"Fetching collection for user '{username}'...")
    rows = collect_rows(session, username, settings, media=args.media, stats=stats, progress=print)
    if not rows:
        print(f"No matching {MEDIA_LABELS[args.media]} found.")
        if args.media == "lp" and settings.lp_strict:
            print("Tip: Re-run without --lp-strict, or enable --debug-stats to see what was filtered.")
    if args.debug_stats:
        print(f"Stats: {stats.summary()}")
    return rows


def write_outputs(args, settings, out_dir: Path, rows_sorted: List[ReleaseRow]) -> None:
    prefix = OUTPUT_PREFIXES["wantlist" if args.wantlist else args.media]
    txt_path = out_dir / f"{prefix}_shelf_order.txt"
    csv_path = out_dir / f"{prefix}_shelf_order.csv"
    write_txt(
        rows_sorted,
        txt_path,
        dividers=settings.show_dividers,
        align=bool(args.txt_align),
        show_country=bool(args.show_country),
        show_price=bool(args.prices),
    )
    write_csv(rows_sorted, csv_path)
    print(f"Wrote: {txt_path}")
    print(f"Wrote: {csv_path}")
    if args.json:
        json_path = out_dir / f"{prefix}_shelf_order.json"
        write_json(rows_sorted, json_path)
        print(f"Wrote: {json_path}")


def print_sections(rows_sorted: List[ReleaseRow], sort_by: str) -> None:
    if sort_by not in ("artist", "title"):
        print("Sections are only available when sorting by artist or title.")
        return
    parts = [f"{s.label}: {len(s.rows)}" for s in section_rows(rows_sorted, sort_by)]
    print("Sections: " + " • ".join(parts))


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    load_environment()
    settings = resolve_settings(args)
    credential = credential_from_env(args.token)
    session = open_session(credential, settings.user_agent)

    print(f"Discogs LP Sorter v{__version__}")

    ident = get_identity(session)
    username = ident.get("username")
    if not username:
        raise ConfigError("Could not determine username from the credentials.")

    out_dir = Path(args.output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    rows = fetch_and_report_rows(args, session, username, settings)
    if not rows:
        return

    if args.prices:
        print(f"Fetching marketplace prices ({settings.currency})…")
        rows = fetch_prices_for_rows(session, rows, currency=settings.currency, progress=print)

    rows_sorted = sort_rows(rows, settings.policy())
    write_outputs(args, settings, out_dir, rows_sorted)
    if args.sections:
        print_sections(rows_sorted, settings.sort_by)
    print(f"Summary: {len(rows_sorted)} items")


def cli() -> None:
    try:
        main()
    except KeyboardInterrupt:
        print("\nInterrupted.")
        sys.exit(130)
    except FetchFailed as e:
        print(f"Error: {e.describe()}", file=sys.stderr)
        sys.exit(exit_code_for_exception(e))
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(exit_code_for_exception(e))


if __name__ == "__main__":
    cli()

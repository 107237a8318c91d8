"""Output formatting and export functions for the shelf sorter.

This module contains all the functions for formatting and writing output files
in various formats (TXT, CSV, JSON). The CSV column order and JSON keys are
read by spreadsheets and archive tools, so they do not change.
"""

from __future__ import annotations

import csv
import io
import json
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from vinylshelf.models import ReleaseRow
from vinylshelf.sorting import section_letter

CSV_COLUMNS = [
    "Artist",
    "Title",
    "Year",
    "Label",
    "CatNo",
    "Country",
    "Format",
    "URL",
    "Notes",
]


def get_divider_line(r: ReleaseRow, current: Optional[str], dividers: bool) -> Tuple[Optional[str], Optional[str]]:
    if not dividers:
        return current, None
    first = section_letter(r, "artist")
    if current != first:
        return first, f"=== {first} ==="
    return current, None


def get_year_str(r: ReleaseRow) -> str:
    return f" ({r.year})" if r.year else ""


def get_label_part(r: ReleaseRow) -> str:
    inner = " ".join(p for p in (r.label, r.catno) if p)
    return f" [{inner}]" if inner else ""


def get_country_part(r: ReleaseRow, show_country: bool) -> str:
    return f" {{{r.country}}}" if (show_country and r.country) else ""


def get_price_part(r: ReleaseRow, show_price: bool) -> str:
    if not show_price:
        return ""
    if r.lowest_price is not None and r.num_for_sale and r.num_for_sale > 0:
        return f" - {r.lowest_price:.0f} {r.price_currency}+ ({r.num_for_sale} for sale)"
    return " [Not listed]"


def format_txt_line(
    r: ReleaseRow,
    artist_width: int = 0,
    title_width: int = 0,
    align: bool = False,
    show_country: bool = False,
    show_price: bool = False,
) -> str:
    year_str = get_year_str(r)
    label_part = get_label_part(r)
    country_part = get_country_part(r, show_country)
    price_part = get_price_part(r, show_price)
    if align:
        return f"{r.artist_display.ljust(artist_width)} | {r.title.ljust(title_width)}{year_str}{label_part}{country_part}{price_part}".rstrip()
    return f"{r.artist_display} — {r.title}{year_str}{label_part}{country_part}{price_part}".rstrip()


def generate_txt_lines(
    rows: Sequence[ReleaseRow],
    dividers: bool = False,
    align: bool = False,
    show_country: bool = False,
    show_price: bool = False,
) -> List[str]:
    """Return the lines that would appear in the TXT output.

    Used by both the file writer and on-screen previews to avoid duplication.
    """
    artist_width = max((len(r.artist_display) for r in rows), default=0) if align else 0
    title_width = max((len(r.title) for r in rows), default=0) if align else 0

    lines: List[str] = []
    current_div: Optional[str] = None
    for r in rows:
        current_div, div_line = get_divider_line(r, current_div, dividers)
        if div_line:
            lines.append(div_line)
        lines.append(format_txt_line(r, artist_width, title_width, align, show_country, show_price))
    return lines


def to_plain_text(rows: Sequence[ReleaseRow], dividers: bool = False, **options) -> str:
    return "\n".join(generate_txt_lines(rows, dividers=dividers, **options))


def _csv_record(r: ReleaseRow) -> List[object]:
    return [
        r.artist_display,
        r.title,
        r.year or "",
        r.label,
        r.catno,
        r.country,
        r.format_str,
        r.discogs_url,
        r.notes,
    ]


def to_csv(rows: Sequence[ReleaseRow]) -> str:
    """Header plus one line per row; quoting per RFC 4180 (quotes doubled)."""
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for r in rows:
        writer.writerow(_csv_record(r))
    return buf.getvalue().rstrip("\n")


def rows_to_json(rows: Sequence[ReleaseRow]) -> List[Dict[str, object]]:
    return [
        {
            "artist": r.artist_display,
            "title": r.title,
            "year": r.year,
            "label": r.label,
            "catno": r.catno,
            "country": r.country,
            "format": r.format_str,
            "url": r.discogs_url,
            "notes": r.notes,
            "sort_artist": r.sort_artist,
            "sort_title": r.sort_title,
        }
        for r in rows
    ]


def to_json(rows: Sequence[ReleaseRow]) -> str:
    return json.dumps(rows_to_json(rows), ensure_ascii=False, indent=2)


def rows_from_json(text: str) -> List[ReleaseRow]:
    """Rebuild rows from to_json output, keeping the stored sort keys as-is."""
    rows: List[ReleaseRow] = []
    for obj in json.loads(text):
        rows.append(
            ReleaseRow(
                artist_display=obj["artist"],
                title=obj["title"],
                year=obj["year"],
                label=obj["label"],
                catno=obj["catno"],
                country=obj["country"],
                format_str=obj["format"],
                discogs_url=obj["url"],
                notes=obj["notes"],
                sort_artist=obj["sort_artist"],
                sort_title=obj["sort_title"],
            )
        )
    return rows


def write_txt(rows: Sequence[ReleaseRow], out_path: Path, dividers: bool = False,
              align: bool = False, show_country: bool = False, show_price: bool = False) -> None:
    lines = generate_txt_lines(rows, dividers=dividers, align=align,
                               show_country=show_country, show_price=show_price)
    with out_path.open("w", encoding="utf-8") as f:
        for line in lines:
            f.write(line + "\n")


def write_csv(rows: Sequence[ReleaseRow], out_path: Path) -> None:
    with out_path.open("w", newline="", encoding="utf-8") as f:
        f.write(to_csv(rows) + "\n")


def write_json(rows: Sequence[ReleaseRow], out_path: Path) -> None:
    with out_path.open("w", encoding="utf-8") as f:
        f.write(to_json(rows) + "\n")

"""
String normalization and row construction for Discogs releases.

This module provides functions for:
- Building display strings for artists, formats and labels
- Deriving the hidden sort keys (articles and "(2)" suffixes stripped)
- Turning a raw collection item into a ReleaseRow
"""

from __future__ import annotations

import re
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional, Tuple

from vinylshelf.models import ReleaseRow

DISCOGS_RELEASE_URL = "https://www.discogs.com/release/{}"
DEFAULT_ARTICLES = ("the", "a", "an")

TRAILING_NUMERIC_RE = re.compile(r"\s*\((\d+)\)$")
JOIN_SPACING_RE = re.compile(r"\s+([&,+.]|feat\.|with)\s+", flags=re.IGNORECASE)
MULTI_SPACE_RE = re.compile(r"\s{2,}")
ARTIST_SPLIT_RE = re.compile(r"[/,]")


def strip_discogs_numeric_suffix(name: str) -> str:
  # Remove trailing " (2)" etc.
  return TRAILING_NUMERIC_RE.sub("", name or "").strip()


def normalize_apostrophes(s: str) -> str:
  # Normalize typographic apostrophes to straight
  return (s or "").replace("’", "'")


def _as_int(value: Any) -> Optional[int]:
  if isinstance(value, bool):
    return None
  if isinstance(value, int):
    return value
  if isinstance(value, str) and value.strip().isdigit():
    return int(value.strip())
  return None


def _text(value: Any) -> str:
  return value.strip() if isinstance(value, str) else ""


def _list(value: Any) -> List:
  return value if isinstance(value, list) else []


def _notes(value: Any) -> str:
  # Collection notes arrive either as text or as a list of {field_id, value} entries
  if isinstance(value, list):
    return "; ".join(_text(n.get("value")) for n in value if isinstance(n, dict) and _text(n.get("value")))
  return _text(value)


# ============================================================================
# Display strings
# ============================================================================

def build_artist_display(basic: Dict) -> str:
  artists = [a for a in _list(basic.get("artists")) if isinstance(a, dict)]
  if not artists:
    return _text(basic.get("artist")) or _text(basic.get("title"))
  parts = []
  for a in artists:
    parts.append(strip_discogs_numeric_suffix(_text(a.get("name"))))
    j = _text(a.get("join"))
    if j:
      # Discogs renders a comma join flush against the previous name.
      parts.append(j if j == "," else f" {j}")
      parts.append(" ")
  text = MULTI_SPACE_RE.sub(" ", "".join(parts).strip())
  # One space on each side of the remaining join tokens
  return JOIN_SPACING_RE.sub(r" \1 ", text)


def format_string(basic: Dict) -> str:
  """Build a concise format string from Discogs format entries.

  Each format entry may include qty, name, descriptions. We collapse them
  into semicolon-delimited segments such as "2xVinyl, LP, Album; CD".
  """

  def build_piece(fmt: Dict) -> Optional[str]:
    name = _text(fmt.get("name"))
    qty = str(fmt.get("qty") or "").strip()
    desc_list = _list(fmt.get("descriptions"))
    descs = ", ".join(d.strip() for d in desc_list if isinstance(d, str) and d.strip())
    qty_prefix = f"{qty}x" if qty and qty != "1" else ""
    base = f"{qty_prefix}{name}" if name else qty_prefix.rstrip("x")
    if descs and base:
      return f"{base}, {descs}"
    if descs:
      return descs
    return base or None

  formats = [f for f in _list(basic.get("formats")) if isinstance(f, dict)]
  pieces = [p for fmt in formats if (p := build_piece(fmt))]
  return "; ".join(pieces)


def label_and_catno(basic: Dict) -> Tuple[str, str]:
  lbls = [lbl for lbl in _list(basic.get("labels")) if isinstance(lbl, dict)]
  if not lbls:
    return "", ""
  # Prefer first label entry
  first = lbls[0]
  return (_text(first.get("name")), _text(first.get("catno")))


# ============================================================================
# Sort keys
# ============================================================================

def strip_articles(text: str, extra_articles: Iterable[str] = ()) -> str:
  """Drop one leading article followed by a space or apostrophe."""
  if not text:
    return ""
  t = normalize_apostrophes(text).strip()
  articles = list(DEFAULT_ARTICLES) + [a.strip().lower() for a in extra_articles if a and a.strip()]
  low = t.lower()
  for art in articles:
    art = art.rstrip("'")  # "l'" and "l" both mean the elided article
    if not art:
      continue
    if low.startswith(art + " ") or low.startswith(art + "'"):
      return t[len(art) + 1 :].strip()
  return t


def make_sort_keys(
  artist_display: str,
  title: str,
  extra_articles: Iterable[str] = (),
) -> Tuple[str, str]:
  extra = tuple(extra_articles)
  # Multi-artist strings list the primary contributor first
  artist_first = ARTIST_SPLIT_RE.split(artist_display or "")[0].strip()
  artist_clean = strip_discogs_numeric_suffix(artist_first)
  return (strip_articles(artist_clean, extra).lower(), strip_articles(title or "", extra).lower())


# ============================================================================
# Build release row
# ============================================================================

def build_release_row(item: Dict, extra_articles: Iterable[str] = ()) -> ReleaseRow:
  """Normalize one collection/want-list item. Missing fields become "" or None."""
  item = item if isinstance(item, dict) else {}
  basic = item.get("basic_information")
  basic = basic if isinstance(basic, dict) else {}
  title = _text(basic.get("title"))
  artist_disp = build_artist_display(basic)
  label, catno = label_and_catno(basic)
  rel_id = _as_int(basic.get("id"))
  sort_artist, sort_title = make_sort_keys(artist_disp, title, extra_articles)
  return ReleaseRow(
    artist_display=artist_disp,
    title=title,
    year=_as_int(basic.get("year")) or None,  # Discogs reports unknown years as 0
    label=label,
    catno=catno,
    country=_text(basic.get("country")),
    format_str=format_string(basic),
    discogs_url=DISCOGS_RELEASE_URL.format(rel_id) if rel_id else "",
    notes=_notes(item.get("notes")),
    release_id=rel_id,
    master_id=_as_int(basic.get("master_id")) or None,
    sort_artist=sort_artist,
    sort_title=sort_title,
    thumb_url=_text(basic.get("thumb")),
    cover_image_url=_text(basic.get("cover_image")),
  )


def rekey_row(
  row: ReleaseRow,
  extra_articles: Iterable[str] = (),
  artist_display: Optional[str] = None,
  title: Optional[str] = None,
) -> ReleaseRow:
  """Return a copy with new source strings and freshly derived sort keys."""
  artist = row.artist_display if artist_display is None else artist_display
  new_title = row.title if title is None else title
  sort_artist, sort_title = make_sort_keys(artist, new_title, extra_articles)
  return replace(row, artist_display=artist, title=new_title, sort_artist=sort_artist, sort_title=sort_title)

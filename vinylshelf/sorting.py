"""
Shelf ordering and sectioning for normalized releases.

Every sort goes through key functions so the result depends only on the rows
and the policy, never on the order the rows arrived in.
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Sequence, Tuple

from unidecode import unidecode

from vinylshelf.models import OrderingPolicy, ReleaseRow, Section

VARIOUS_NAMES = {"various", "various artists"}
VARIOUS_SORT_KEY = "various"
MISSING_YEAR = 9999
OTHER_SECTION = "#"
UNKNOWN_SECTION = "?"
_NUMERIC_LABEL_RE = re.compile(r"^\d+$")


def collate(text: str) -> Tuple[str, str]:
  """Accent-folding collation key that is still total over distinct strings."""
  return (unidecode(text or "").lower(), text or "")


def is_various_artist(artist_disp: str) -> bool:
  a = (artist_disp or "").strip().lower()
  return a in VARIOUS_NAMES


def _year_value(r: ReleaseRow) -> int:
  return r.year if isinstance(r.year, int) else MISSING_YEAR


def _tie_break(r: ReleaseRow) -> tuple:
  # sort_artist + sort_title decides; the rest only separates rows whose keys all match
  rid = r.release_id if r.release_id is not None else -1
  return (collate(r.sort_artist + r.sort_title), rid, r.artist_display, r.title, r.notes)


def sort_key_price_desc(r: ReleaseRow) -> tuple:
  return (r.lowest_price is None, -(r.lowest_price or 0.0), _tie_break(r))


def sort_key_price_asc(r: ReleaseRow) -> tuple:
  return (r.lowest_price is None, r.lowest_price or 0.0, _tie_break(r))


def sort_key_year(r: ReleaseRow) -> tuple:
  return (_year_value(r), _tie_break(r))


def sort_key_general(r: ReleaseRow, policy: OrderingPolicy) -> tuple:
  is_var = is_various_artist(r.artist_display)
  var_flag = 1 if (policy.various_policy == "last" and is_var) else 0

  artist_key = r.sort_artist
  if policy.various_policy == "title" and is_var:
    # Compilations share one artist key, so between two of them the title decides
    artist_key = VARIOUS_SORT_KEY

  if policy.sort_by == "title":
    primary, secondary = r.sort_title, artist_key
  else:
    primary, secondary = artist_key, r.sort_title

  return (var_flag, collate(primary), collate(secondary), _year_value(r), _tie_break(r))


def sort_rows(rows: Iterable[ReleaseRow], policy: OrderingPolicy) -> List[ReleaseRow]:
  """Return a new list of rows ordered by the policy.

  Args:
    rows: ReleaseRow objects; never modified
    policy: sort dimension ("artist", "title", "year", "price_asc",
      "price_desc") and Various Artists handling ("normal", "last", "title")
  """
  if policy.sort_by == "price_desc":
    return sorted(rows, key=sort_key_price_desc)

  if policy.sort_by == "price_asc":
    return sorted(rows, key=sort_key_price_asc)

  if policy.sort_by == "year":
    return sorted(rows, key=sort_key_year)

  return sorted(rows, key=lambda r: sort_key_general(r, policy))


# ============================================================================
# Sections
# ============================================================================

def section_letter(r: ReleaseRow, sort_by: str = "artist") -> str:
  """Shelf letter of a row, folded the same way the sort keys are compared."""
  key = (r.sort_title if sort_by == "title" else r.sort_artist).strip()
  first = key[:1]
  if not (first and first.isalpha()):
    return OTHER_SECTION
  folded = unidecode(first)[:1]
  return (folded if folded.isalpha() else first).upper()


def _section_order(label: str) -> tuple:
  if label == OTHER_SECTION:
    return (2, 0, collate(label))
  if label == UNKNOWN_SECTION:
    return (3, 0, collate(label))
  if _NUMERIC_LABEL_RE.match(label):
    return (0, int(label), collate(label))
  return (1, 0, collate(label))


def section_rows(rows: Sequence[ReleaseRow], sort_by: str) -> List[Section]:
  """Group already-sorted rows into letter sections, keeping their order."""
  if sort_by not in ("artist", "title"):
    raise ValueError(f"Sections need artist or title ordering, not {sort_by!r}")
  buckets: Dict[str, List[ReleaseRow]] = {}
  for r in rows:
    buckets.setdefault(section_letter(r, sort_by), []).append(r)
  return [Section(label, tuple(buckets[label])) for label in sorted(buckets, key=_section_order)]

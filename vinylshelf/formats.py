"""
Format detection for Discogs releases.

Catalog format data is user-submitted and inconsistent, so every check here
works on trimmed, lower-cased descriptor tokens and tolerates missing keys.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Set

SIZE_12_TOKENS = {'12"', "12”", "12in", "12-inch"}
SIZE_7_TOKENS = {'7"', "7”", "7in", "7-inch"}


def _as_list(value: Any) -> List:
  return value if isinstance(value, list) else []


def _format_name(fmt: Dict) -> str:
  name = fmt.get("name")
  return name.strip().lower() if isinstance(name, str) else ""


def _vinyl_formats(basic: Dict) -> List[Dict]:
  if not isinstance(basic, dict):
    return []
  return [f for f in _as_list(basic.get("formats")) if isinstance(f, dict) and _format_name(f) == "vinyl"]


def _desc_set(fmt: Dict) -> Set[str]:
  return {d.strip().lower() for d in _as_list(fmt.get("descriptions")) if isinstance(d, str) and d.strip()}


def vinyl_descriptor_sets(basic: Dict) -> List[Set[str]]:
  """One set of trimmed, lower-cased descriptors per Vinyl format."""
  return [_desc_set(f) for f in _vinyl_formats(basic)]


def has_33rpm_signal(descs: Set[str]) -> bool:
  """True when some token carries '33' and some token is, or ends with, 'rpm'.

  Periods and spaces are removed first so '33 1/3 RPM', '33⅓RPM' and '33.RPM'
  all read the same.
  """
  norm_tokens = {t.replace(".", "").replace(" ", "") for t in descs}
  has_33 = any("33" in t for t in norm_tokens)
  has_rpm = any(t == "rpm" or t.endswith("rpm") for t in norm_tokens)
  return has_33 and has_rpm


def _has_rpm_token(descs: Set[str]) -> bool:
  return any(t.replace(".", "").replace(" ", "").endswith("rpm") for t in descs)


def has_lp_tag(descs: Set[str]) -> bool:
  return "lp" in descs or "album" in descs


def _has_12_inch(descs: Set[str]) -> bool:
  # Any descriptor containing "12" counts, which also catches unrelated notes.
  return bool(descs & SIZE_12_TOKENS) or any("12" in d for d in descs)


def is_lp_33(basic: Dict, strict: bool = False) -> bool:
  """Determine if a release is a 33⅓ LP.

  Strict: a Vinyl format tagged LP/Album whose speed is 33 RPM. An LP with no
  speed descriptor at all counts as 33; one stating another speed does not.
  Lenient: a Vinyl format tagged LP/Album, or an untagged 12" record with a
  33 RPM signal.
  """
  desc_sets = vinyl_descriptor_sets(basic)
  if not desc_sets:
    return False
  if strict:
    return any(
      has_lp_tag(s) and (has_33rpm_signal(s) or not _has_rpm_token(s))
      for s in desc_sets
    )
  return any(
    has_lp_tag(s) or (has_33rpm_signal(s) and _has_12_inch(s))
    for s in desc_sets
  )


def is_vinyl_45(basic: Dict) -> bool:
  """Detect 7" 45 RPM vinyl singles.

  Requires the ~7" size token so 12" 45 RPM maxis are not matched.
  """
  for descs in vinyl_descriptor_sets(basic):
    if descs & SIZE_7_TOKENS and any("45" in d and "rpm" in d for d in descs):
      return True
  return False


def is_cd_format(basic: Dict) -> bool:
  """Detect CD or CDr formats."""
  if not isinstance(basic, dict):
    return False
  for f in _as_list(basic.get("formats")):
    if isinstance(f, dict) and _format_name(f) in {"cd", "cdr"}:
      return True
  return False


MEDIA_LABELS = {"lp": "33⅓ RPM LPs", "45": "7\" 45 RPM singles", "cd": "CDs"}


def media_classifier(media: str, strict: bool = False) -> Callable[[Dict], bool]:
  """Return the predicate that keeps releases of the given media kind."""
  if media == "lp":
    return lambda basic: is_lp_33(basic, strict=strict)
  if media == "45":
    return is_vinyl_45
  if media == "cd":
    return is_cd_format
  raise ValueError(f"Unknown media kind: {media!r}")


def describe_vinyl(basic: Dict) -> Optional[str]:
  """Comma-joined raw descriptors of the Vinyl formats, for filter reports."""
  tokens: List[str] = []
  for f in _vinyl_formats(basic):
    tokens.extend(d.strip() for d in _as_list(f.get("descriptions")) if isinstance(d, str) and d.strip())
  return ", ".join(tokens) if tokens else None

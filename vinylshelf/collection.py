"""
Collection row collectors.

Ties the paginated fetcher to the classifier and normalizer. Everything here
is lazy: rows are produced as pages arrive, so a caller can show progress or
stop early without leaving anything half-built.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Iterator, List, Optional

import requests

from vinylshelf.api import iterate_collection, iterate_wantlist
from vinylshelf.formats import (
    describe_vinyl,
    has_33rpm_signal,
    has_lp_tag,
    media_classifier,
    vinyl_descriptor_sets,
)
from vinylshelf.models import ReleaseRow
from vinylshelf.normalize import build_release_row
from vinylshelf.settings import CollectionSettings

PROGRESS_EVERY = 50

logger = logging.getLogger(__name__)

Progress = Callable[[str], None]


@dataclass
class FilterStats:
    """How many scanned items survived each format check."""

    scanned: int = 0
    vinyl: int = 0
    vinyl_lp: int = 0
    vinyl_lp_33: int = 0
    kept: int = 0

    def summary(self) -> str:
        return (
            f"scanned={self.scanned}, vinyl={self.vinyl}, vinyl+LP={self.vinyl_lp}, "
            f"vinyl+LP+33rpm={self.vinyl_lp_33}, kept={self.kept}"
        )


def _update_stats(basic: Dict, stats: FilterStats) -> None:
    stats.scanned += 1
    desc_sets = vinyl_descriptor_sets(basic)
    if not desc_sets:
        return
    stats.vinyl += 1
    descs = set().union(*desc_sets)
    if not has_lp_tag(descs):
        return
    stats.vinyl_lp += 1
    if has_33rpm_signal(descs):
        stats.vinyl_lp_33 += 1


def iter_rows(
    entries: Iterable[Dict],
    media: Optional[str] = "lp",
    strict: bool = False,
    extra_articles: Iterable[str] = (),
    stats: Optional[FilterStats] = None,
    progress: Optional[Progress] = None,
) -> Iterator[ReleaseRow]:
    """Classify and normalize raw entries lazily.

    Args:
        entries: raw collection items (e.g. a PagedCollection)
        media: "lp", "45", "cd", or None to keep every item
        strict: strict 33 RPM detection for LPs
        extra_articles: leading articles stripped for sort keys besides the/a/an
        stats: optional counters updated as items pass
        progress: optional callback, called every PROGRESS_EVERY kept rows
    """
    keep = media_classifier(media, strict=strict) if media else None
    articles = tuple(extra_articles)
    stats = stats if stats is not None else FilterStats()
    for item in entries:
        basic = item.get("basic_information") if isinstance(item, dict) else None
        if not isinstance(basic, dict) or not basic:
            continue
        _update_stats(basic, stats)
        if keep is not None and not keep(basic):
            descs = describe_vinyl(basic)
            if descs:
                logger.debug("Skipping %r (vinyl: %s)", basic.get("title"), descs)
            continue
        stats.kept += 1
        if progress and stats.kept % PROGRESS_EVERY == 0:
            progress(f"Loaded {stats.kept} items…")
        yield build_release_row(item, articles)


def collect_rows(
    session: requests.Session,
    username: str,
    settings: CollectionSettings,
    media: str = "lp",
    folder_id: int = 0,
    stats: Optional[FilterStats] = None,
    progress: Optional[Progress] = None,
) -> List[ReleaseRow]:
    """Fetch a collection folder and keep the rows of one media kind.

    Raises:
        FetchFailed: if ingestion aborts; no partial list is returned
    """
    entries = iterate_collection(
        session,
        username,
        folder_id=folder_id,
        per_page=settings.per_page,
        max_pages=settings.max_pages,
    )
    rows = list(iter_rows(
        entries,
        media=media,
        strict=settings.lp_strict,
        extra_articles=settings.extra_articles,
        stats=stats,
        progress=progress,
    ))
    logger.info("Collected %d %s rows for %s", len(rows), media, username)
    return rows


def collect_wantlist_rows(
    session: requests.Session,
    username: str,
    settings: CollectionSettings,
    progress: Optional[Progress] = None,
) -> List[ReleaseRow]:
    """Fetch the want list; every format is kept."""
    entries = iterate_wantlist(session, username, per_page=settings.per_page, max_pages=settings.max_pages)
    return list(iter_rows(entries, media=None, extra_articles=settings.extra_articles, progress=progress))

"""Shared fixtures and stand-ins for the Discogs HTTP layer."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest

from vinylshelf.models import ReleaseRow
from vinylshelf.normalize import make_sort_keys


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None,
                 headers: Optional[Dict[str, str]] = None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.headers = headers or {}
        self.text = text

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeSession:
    """Replays queued responses (or raises queued exceptions) in order."""

    def __init__(self, *outcomes: Any) -> None:
        self.outcomes = list(outcomes)
        self.calls: List[Dict[str, Any]] = []
        self.headers: Dict[str, str] = {}

    def get(self, url: str, params: Optional[Dict[str, str]] = None, timeout: Optional[float] = None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def collection_page(items: List[Dict], pages: int = 1, page: int = 1) -> FakeResponse:
    return FakeResponse(200, {
        "pagination": {"page": page, "pages": pages, "per_page": 100, "items": len(items)},
        "releases": items,
    })


def make_item(title: str = "Untitled", artists=("Someone",), formats=None, year=None,
              release_id: Optional[int] = None, **basic_extra: Any) -> Dict:
    basic = {
        "id": release_id,
        "title": title,
        "year": year,
        "artists": [{"name": a, "join": ""} for a in artists],
        "formats": formats if formats is not None else [
            {"name": "Vinyl", "qty": "1", "descriptions": ["LP", "Album"]}
        ],
    }
    basic.update(basic_extra)
    return {"id": release_id, "basic_information": basic, "notes": ""}


def make_row(artist: str, title: str = "X", year: Optional[int] = None,
             release_id: Optional[int] = None, extra_articles=(), **fields: Any) -> ReleaseRow:
    sort_artist, sort_title = make_sort_keys(artist, title, extra_articles)
    values = dict(
        artist_display=artist,
        title=title,
        year=year,
        label="",
        catno="",
        country="",
        format_str="",
        discogs_url=f"https://www.discogs.com/release/{release_id}" if release_id else "",
        notes="",
        release_id=release_id,
        sort_artist=sort_artist,
        sort_title=sort_title,
    )
    values.update(fields)
    return ReleaseRow(**values)


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

SORT_BY_CHOICES = ("artist", "title", "year", "price_asc", "price_desc")
VARIOUS_POLICY_CHOICES = ("normal", "last", "title")


@dataclass(frozen=True)
class ReleaseRow:
    artist_display: str
    title: str
    year: Optional[int]
    label: str
    catno: str
    country: str
    format_str: str
    discogs_url: str
    notes: str
    release_id: Optional[int] = None
    master_id: Optional[int] = None
    sort_artist: str = ""
    sort_title: str = ""
    median_price: Optional[float] = None
    lowest_price: Optional[float] = None
    num_for_sale: Optional[int] = None
    price_currency: str = ""
    thumb_url: str = ""
    cover_image_url: str = ""


@dataclass(frozen=True)
class OrderingPolicy:
    """How a shelf is ordered. Passed by value into every sort/section call."""

    sort_by: str = "artist"
    various_policy: str = "normal"

    def __post_init__(self) -> None:
        if self.sort_by not in SORT_BY_CHOICES:
            raise ValueError(f"Unsupported sort_by: {self.sort_by!r}")
        if self.various_policy not in VARIOUS_POLICY_CHOICES:
            raise ValueError(f"Unsupported various_policy: {self.various_policy!r}")


@dataclass(frozen=True)
class Section:
    label: str
    rows: Tuple[ReleaseRow, ...]


@dataclass
class CollectionPage:
    """One decoded page of a Discogs listing endpoint."""

    items: List[Dict] = field(default_factory=list)
    total_pages: Optional[int] = None


@dataclass(frozen=True)
class PriceInfo:
    lowest: Optional[float]
    num_for_sale: Optional[int]
    currency: str

"""
Discogs API operations module.

Handles all interactions with the Discogs API including:
- Retry logic and rate limiting
- Identity fetching
- Paginated collection and want-list iteration
- Marketplace price fetching
"""

from __future__ import annotations

import functools
import logging
import time
from dataclasses import replace
from typing import Any, Callable, Dict, Iterator, List, Optional

import requests

from vinylshelf.errors import ApiError, FetchFailed
from vinylshelf.models import CollectionPage, PriceInfo, ReleaseRow

API_BASE = "https://api.discogs.com"
DEFAULT_RETRIES = 3
DEFAULT_BACKOFF = 1.0
MAX_BACKOFF = 10.0
REQUEST_TIMEOUT = 30

logger = logging.getLogger(__name__)

FetchPage = Callable[[int], CollectionPage]


def _should_retry(status: int) -> bool:
    """Check if HTTP status code should trigger a retry."""
    return status == 429 or 500 <= status < 600


def _backoff_seconds(attempt: int, backoff: float) -> float:
    return min(backoff * (2 ** attempt), MAX_BACKOFF)


def _retry_sleep_seconds(resp: Any, attempt: int, backoff: float) -> float:
    """Calculate sleep time for retry, preferring the server's Retry-After."""
    retry_after = resp.headers.get("Retry-After") if resp is not None else None
    if retry_after:
        try:
            return max(0.0, float(retry_after))
        except ValueError:
            pass
    return _backoff_seconds(attempt, backoff)


def _polite_rate_limit_pause(resp: Any, sleep: Callable[[float], None]) -> None:
    """Pause if approaching Discogs rate limit."""
    try:
        remaining = int(resp.headers.get("X-Discogs-Ratelimit-Remaining", "5"))
    except (TypeError, ValueError):
        return
    if remaining <= 1:
        logger.info("Discogs rate limit nearly exhausted; pausing")
        sleep(2)


def api_get(session: requests.Session, url: str,
            params: Optional[Dict[str, str]] = None,
            retries: int = DEFAULT_RETRIES, backoff: float = DEFAULT_BACKOFF,
            sleep: Callable[[float], None] = time.sleep) -> requests.Response:
    """Execute a GET request to Discogs API with retry logic.

    Retries on 429, 5xx and network errors. After the last attempt the last
    error is raised unchanged.

    Returns:
        requests.Response object

    Raises:
        ApiError: for non-retryable statuses, or a retryable one that persisted
        requests.RequestException: if the network kept failing
    """
    last_error: Optional[Exception] = None
    for attempt in range(retries):
        final = attempt == retries - 1
        try:
            resp = session.get(url, params=params, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            last_error = e
            if final:
                break
            delay = _backoff_seconds(attempt, backoff)
            logger.warning("Network error for %s (%s); retrying in %.1fs", url, e, delay)
            sleep(delay)
            continue
        status = resp.status_code
        if status < 400:
            _polite_rate_limit_pause(resp, sleep)
            return resp
        if not _should_retry(status):
            raise ApiError(status, f"Discogs API error {status}: {resp.text[:200]}")
        last_error = ApiError(status, f"Transient API error {status}")
        if final:
            break
        delay = _retry_sleep_seconds(resp, attempt, backoff)
        logger.warning("Discogs returned %s for %s; retrying in %.1fs", status, url, delay)
        sleep(delay)
    if last_error:
        raise last_error
    raise ApiError(0, "Discogs API request failed after retries")


def get_identity(session: requests.Session) -> Dict:
    """Get the authenticated user's identity from Discogs API."""
    url = f"{API_BASE}/oauth/identity"
    return api_get(session, url).json()


# ============================================================================
# Pagination
# ============================================================================

def _decode_page(resp: requests.Response, items_key: str) -> CollectionPage:
    try:
        data = resp.json()
    except ValueError as e:
        raise FetchFailed("Discogs returned a body that is not JSON", cause=e) from e
    if not isinstance(data, dict) or not isinstance(data.get(items_key), list):
        raise FetchFailed(f"Discogs response is missing the '{items_key}' list")
    pagination = data.get("pagination")
    total_pages: Optional[int] = None
    if isinstance(pagination, dict):
        try:
            total_pages = int(pagination["pages"])
        except (KeyError, TypeError, ValueError):
            total_pages = None
    return CollectionPage(items=data[items_key], total_pages=total_pages)


def fetch_collection_page(session: requests.Session, username: str, folder_id: int = 0,
                          page: int = 1, per_page: int = 100) -> CollectionPage:
    url = f"{API_BASE}/users/{username}/collection/folders/{folder_id}/releases"
    params = {
        "page": str(page),
        "per_page": str(per_page),
        # Sort isn't critical since we post-process, but helps UX if interrupted
        "sort": "artist",
        "sort_order": "asc",
    }
    logger.debug("Fetching collection page %s for %s (folder %s)", page, username, folder_id)
    return _decode_page(api_get(session, url, params=params), "releases")


def fetch_wantlist_page(session: requests.Session, username: str,
                        page: int = 1, per_page: int = 100) -> CollectionPage:
    url = f"{API_BASE}/users/{username}/wants"
    params = {"page": str(page), "per_page": str(per_page)}
    logger.debug("Fetching want list page %s for %s", page, username)
    return _decode_page(api_get(session, url, params=params), "wants")


class PagedCollection:
    """Restartable lazy sequence over a numbered page listing.

    Each iteration starts again at page 1. The total page count comes from the
    first page and is trusted for the rest of that iteration. Pages are
    requested strictly one after another.
    """

    def __init__(self, fetch_page: FetchPage, max_pages: Optional[int] = None) -> None:
        self._fetch_page = fetch_page
        self._max_pages = max_pages

    def __iter__(self) -> Iterator[Dict]:
        page = 1
        total_pages: Optional[int] = None
        fetched = 0
        while True:
            try:
                data = self._fetch_page(page)
            except FetchFailed as e:
                e.page, e.fetched = page, fetched
                raise
            except (ApiError, requests.RequestException) as e:
                raise FetchFailed(str(e), cause=e, page=page, fetched=fetched) from e
            if total_pages is None:
                if data.total_pages is None:
                    raise FetchFailed("Discogs response is missing pagination", page=page, fetched=fetched)
                total_pages = data.total_pages
                logger.debug("Listing reports %s page(s)", total_pages)
            for item in data.items:
                fetched += 1
                yield item
            page += 1
            if self._max_pages and page > self._max_pages:
                break
            if page > total_pages:
                break


def iterate_collection(session: requests.Session, username: str, folder_id: int = 0,
                       per_page: int = 100, max_pages: Optional[int] = None) -> PagedCollection:
    """Iterate through all releases in a collection folder (0 = All)."""
    fetch = functools.partial(_collection_page_at, session, username, folder_id, per_page)
    return PagedCollection(fetch, max_pages=max_pages)


def iterate_wantlist(session: requests.Session, username: str,
                     per_page: int = 100, max_pages: Optional[int] = None) -> PagedCollection:
    fetch = functools.partial(_wantlist_page_at, session, username, per_page)
    return PagedCollection(fetch, max_pages=max_pages)


def _collection_page_at(session, username, folder_id, per_page, page):
    return fetch_collection_page(session, username, folder_id, page=page, per_page=per_page)


def _wantlist_page_at(session, username, per_page, page):
    return fetch_wantlist_page(session, username, page=page, per_page=per_page)


# ============================================================================
# Marketplace prices
# ============================================================================

def fetch_release_price(session: requests.Session, release_id: int,
                        currency: str = "USD") -> PriceInfo:
    """Fetch the lowest price and number for sale for a release from Discogs Marketplace.

    This is the price for the specific pressing, not the master release.
    Failures are logged and reported as "no price".
    """
    url = f"{API_BASE}/marketplace/stats/{release_id}"
    try:
        data = api_get(session, url, params={"curr_abbr": currency}).json()
    except (ApiError, requests.RequestException, ValueError) as e:
        logger.warning("Price lookup failed for release %s: %s", release_id, e)
        return PriceInfo(None, None, currency)

    logger.debug("Marketplace stats for release %s: %s", release_id, data)

    if data.get("blocked_from_sale"):
        return PriceInfo(None, 0, currency)

    num_for_sale = data.get("num_for_sale")
    if not num_for_sale:
        return PriceInfo(None, 0, currency)

    lowest_price_data = data.get("lowest_price")
    if isinstance(lowest_price_data, dict):
        lowest = lowest_price_data.get("value")
        # Use the actual currency from the response, not the requested one
        actual_currency = lowest_price_data.get("currency") or currency
        if actual_currency != currency:
            logger.warning("Requested %s but Discogs returned %s", currency, actual_currency)
        return PriceInfo(float(lowest) if lowest is not None else None, num_for_sale, actual_currency)
    return PriceInfo(None, num_for_sale, currency)


def fetch_prices_for_rows(
    session: requests.Session,
    rows: List[ReleaseRow],
    currency: str = "USD",
    progress: Optional[Callable[[str], None]] = None,
) -> List[ReleaseRow]:
    """Return copies of the rows with marketplace price fields filled in.

    One lookup per release id; rows without an id are returned unchanged.
    """
    price_cache: Dict[int, PriceInfo] = {}
    total = len({r.release_id for r in rows if r.release_id})
    priced: List[ReleaseRow] = []

    for row in rows:
        rid = row.release_id
        if not rid:
            priced.append(row)
            continue
        if rid not in price_cache:
            if progress:
                album_info = f"{row.artist_display} - {row.title}"
                if len(album_info) > 40:
                    album_info = album_info[:37] + "..."
                progress(f"[{len(price_cache) + 1}/{total}] {album_info}")
            price_cache[rid] = fetch_release_price(session, rid, currency)
        info = price_cache[rid]
        priced.append(replace(
            row,
            lowest_price=info.lowest,
            median_price=info.lowest,  # Using lowest as median approximation
            num_for_sale=info.num_for_sale,
            price_currency=info.currency,
        ))
    return priced

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional
from urllib.parse import urlparse

import requests

from .errors import InsufficientSourcesError
from .models import SourceItem

logger = logging.getLogger(__name__)

HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; VeracityGraph/1.0; +link-check)",
}


def _is_http(url: str) -> bool:
    try:
        p = urlparse(url)
    except ValueError:
        return False
    return p.scheme in {"http", "https"} and bool(p.netloc)


def is_link_alive(url: str, timeout: float) -> bool:
    if not _is_http(url):
        logger.warning("Link verification skipped for non-http link: %s", url)
        return False
    try:
        r = requests.head(url, allow_redirects=True, timeout=timeout, headers=HEADERS)
    except requests.RequestException as e:
        logger.warning("Link verification error for: %s (%s)", url, e)
        return False
    if 200 <= r.status_code < 400:
        return True
    logger.warning("Link verification failed for: %s (status %s)", url, r.status_code)
    return False


def _checked(item: SourceItem, timeout: float) -> SourceItem:
    if not item.link or is_link_alive(item.link, timeout):
        return item
    return item.model_copy(update={"link": None})


def verify_links(breakdown: List[SourceItem], timeout: float, workers: int) -> List[SourceItem]:
    if not breakdown:
        return []
    with ThreadPoolExecutor(max_workers=max(1, workers)) as pool:
        return list(pool.map(lambda x: _checked(x, timeout), breakdown))


def verified_count(breakdown: List[SourceItem]) -> int:
    return sum(1 for x in breakdown if x.link)


def ensure_enough_sources(breakdown: List[SourceItem], minimum: int) -> None:
    n = verified_count(breakdown)
    if n < minimum:
        raise InsufficientSourcesError(f"only {n} verified sources, need {minimum}")


def rank_sources(breakdown: List[SourceItem], limit: Optional[int] = 10) -> List[SourceItem]:
    ranked = sorted(breakdown, key=lambda x: abs(x.impact), reverse=True)
    return ranked if limit is None else ranked[: max(0, limit)]

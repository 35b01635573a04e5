"""Image URL collection and high-resolution rewriting."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional

from listings.models.domain import ListingDetail, ListingSummary

HIGH_RES_SUFFIX = "/s-l1600."

_THUMBS_SEGMENT = re.compile(r"/thumbs(?=/)")
_SIZE_SUFFIX = re.compile(r"/s-l\d+\.")
_THUMB_SUFFIX = re.compile(r"-thumb(?=\.)")


def _rewrite_once(url: str) -> str:
    url = _THUMBS_SEGMENT.sub("", url)
    url = _SIZE_SUFFIX.sub(HIGH_RES_SUFFIX, url)
    return _THUMB_SUFFIX.sub("", url)


def to_high_res(url: Optional[str]) -> Optional[str]:
    """Rewrite an eBay image URL to its largest variant.

    ``/thumbs/`` collapses to ``/``, ``/s-l<n>.`` becomes ``/s-l1600.`` and a
    ``-thumb`` before the extension is dropped. The rules are applied until the
    URL stops changing, so the result is a fixed point. Unrecognized URLs come
    back untouched and ``None``/``""`` are returned as is.
    """
    if not url:
        return url
    while True:
        rewritten = _rewrite_once(url)
        if rewritten == url:
            return url
        url = rewritten


def _unique(urls: Iterable[Optional[str]]) -> List[str]:
    # dict keeps first-seen order
    return list(dict.fromkeys(u for u in urls if u))


def _upgraded(urls: Iterable[Optional[str]]) -> List[str]:
    return _unique(to_high_res(url) for url in _unique(urls))


def summary_images(summary: ListingSummary) -> List[str]:
    """High-res image URLs carried by a search result."""
    return _upgraded([summary.gallery_url, *summary.picture_urls])


def detail_images(detail: ListingDetail) -> List[str]:
    """High-res image URLs found anywhere in a ``GetSingleItem`` item."""
    urls: List[Optional[str]] = list(detail.picture_urls)
    urls.append(detail.gallery_url)
    if detail.picture_details is not None:
        urls.append(detail.picture_details.gallery_url)
        urls.extend(detail.picture_details.picture_urls)
    for picture_set in detail.variation_picture_sets:
        urls.extend(picture_set)
    return _upgraded(urls)


def merge_images(*sources: Iterable[Optional[str]]) -> List[str]:
    """Union URL lists: dedupe on the raw text, upgrade, then dedupe the upgraded forms.

    Two sizes of the same picture collapse into one ``s-l1600`` entry.
    """
    return _upgraded(url for source in sources for url in source)

"""Extraction of affiliate parameters from a tracking link."""

from __future__ import annotations

from urllib.parse import parse_qsl, urlsplit

from betlink.constants import AFFILIATE_LINK_MARKER, NUMERIC_FIELD_PATTERN, TRACKING_HOST, TRACKING_PATH
from betlink.services.types import AffiliateParams, LinkError, LinkErrorKind

REQUIRED_QUERY_KEYS = ("siteid", "affid", "adid", "c")
NUMERIC_QUERY_KEYS = ("siteid", "affid", "adid")


def first_query_values(query: str) -> dict[str, str]:
    """Map each query key to its first value, like ``URLSearchParams.get``."""

    values: dict[str, str] = {}
    for key, value in parse_qsl(query, keep_blank_values=True):
        values.setdefault(key, value)
    return values


def parse_affiliate_link(text: str) -> AffiliateParams | LinkError:
    """Validate a tracking link and return its siteid, affid, adid and c.

    Checks run in a fixed order and the first failing one decides the error:
    URL shape, host, path, presence of all four parameters, numeric ids.
    """

    try:
        parts = urlsplit(text.strip())
        hostname = parts.hostname
    except ValueError:
        return LinkError(LinkErrorKind.INVALID_URL)

    if not parts.scheme or not hostname:
        return LinkError(LinkErrorKind.INVALID_URL)

    if TRACKING_HOST not in hostname:
        return LinkError(LinkErrorKind.WRONG_HOST)

    if not parts.path.lower().endswith(TRACKING_PATH.lower()):
        return LinkError(LinkErrorKind.WRONG_PATH)

    query = first_query_values(parts.query)
    if any(not query.get(key) for key in REQUIRED_QUERY_KEYS):
        return LinkError(LinkErrorKind.INCOMPLETE_LINK)

    for key in NUMERIC_QUERY_KEYS:
        if not NUMERIC_FIELD_PATTERN.fullmatch(query[key]):
            return LinkError(LinkErrorKind.NON_NUMERIC_FIELD, field=key)

    return AffiliateParams(
        site_id=query["siteid"],
        aff_id=query["affid"],
        ad_id=query["adid"],
        c=query["c"],
    )


def looks_like_affiliate_link(text: str) -> bool:
    return AFFILIATE_LINK_MARKER in text.lower()

"""Resolution of a shared bet slip from a link or a bare slip code."""

from __future__ import annotations

from urllib.parse import urlsplit

from betlink.constants import (
    BARE_BET_CODE_PATTERN,
    BET_SLIP_BASE_URL,
    BET_SLIP_HOST,
    BET_SLIP_LINK_MARKER,
    BET_SLIP_PATH_PATTERN,
)
from betlink.services.types import BetReference, LinkError, LinkErrorKind


def canonical_bet_slip_url(code: str) -> str:
    return f"{BET_SLIP_BASE_URL}{code}"


def parse_bet_reference(text: str) -> BetReference | LinkError:
    """Accept either ``https://superbet.bet.br/bilhete-compartilhado/<code>`` or ``<code>``.

    Both forms resolve to the same canonical slip URL, so whatever the user
    pasted, the builder receives a normalized link without query or fragment.
    """

    candidate = text.strip()

    if BARE_BET_CODE_PATTERN.fullmatch(candidate):
        return BetReference(code=candidate, resolved_url=canonical_bet_slip_url(candidate))

    try:
        parts = urlsplit(candidate)
        hostname = parts.hostname
    except ValueError:
        return LinkError(LinkErrorKind.INVALID_BET_INPUT)

    if not parts.scheme or not hostname or BET_SLIP_HOST not in hostname:
        return LinkError(LinkErrorKind.INVALID_BET_INPUT)

    match = BET_SLIP_PATH_PATTERN.fullmatch(parts.path)
    if match is None:
        return LinkError(LinkErrorKind.INVALID_BET_INPUT)

    code = match.group(1)
    return BetReference(code=code, resolved_url=canonical_bet_slip_url(code))


def looks_like_bet_reference(text: str) -> bool:
    candidate = text.strip()
    return BET_SLIP_LINK_MARKER in candidate.lower() or BARE_BET_CODE_PATTERN.fullmatch(candidate) is not None

"""Final tracking link composition."""

from __future__ import annotations

from urllib.parse import urlencode

from betlink.constants import BTAG_TEMPLATE, TRACKING_BASE_URL
from betlink.services.types import AffiliateParams


def build_btag(affiliate: AffiliateParams) -> str:
    return BTAG_TEMPLATE.format(site_id=affiliate.site_id, ad_id=affiliate.ad_id)


def build_tracking_link(affiliate: AffiliateParams, bet_url: str) -> str:
    """Compose the tracking URL that redirects to ``bet_url``.

    Values are form-encoded, so the destination travels fully escaped in
    ``asclurl``.
    """

    query = urlencode(
        [
            ("btag", build_btag(affiliate)),
            ("affid", affiliate.aff_id),
            ("siteid", affiliate.site_id),
            ("adid", affiliate.ad_id),
            ("c", affiliate.c),
            ("asclurl", bet_url),
        ]
    )
    return f"{TRACKING_BASE_URL}?{query}"

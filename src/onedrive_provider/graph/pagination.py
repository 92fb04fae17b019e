"""Conversion between Graph continuation links and portable page cursors."""

import logging
from typing import Any
from urllib.parse import parse_qs, urlencode, urlparse

from onedrive_provider.graph.models import ODATA_NEXT_LINK, ODATA_SKIP_TOKEN

logger = logging.getLogger(__name__)

CURSOR_PARAM = "cursor"


def extract_skip_token(next_link: str) -> str | None:
    """Return the $skiptoken query parameter of an @odata.nextLink URL, if any."""
    params = parse_qs(urlparse(next_link).query, keep_blank_values=True)
    tokens = params.get(ODATA_SKIP_TOKEN, [])
    if tokens:
        return tokens[0]
    return None


def get_next_page_path(data: dict[str, Any]) -> str | None:
    """Compute the cursor query string for the page after ``data``.

    Args:
        data: Raw Graph collection response.

    Returns:
        ``?cursor=<skiptoken>`` with the token URL-encoded, or None when the
        response has no further page.
    """
    next_link = data.get(ODATA_NEXT_LINK)
    if not next_link:
        return None

    skip_token = extract_skip_token(next_link)
    if skip_token is None:
        logger.warning("[get_next_page_path] next link has no $skiptoken; treating as last page")
        return None
    return f"?{urlencode({CURSOR_PARAM: skip_token})}"

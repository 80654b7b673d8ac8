"""Shared helpers for REST APIs that paginate with the Link header."""

from __future__ import annotations

from typing import Optional

import requests

DEFAULT_TIMEOUT_S = 30


def next_link(link_header: str) -> str:
    """Return the rel="next" URL of a Link header, or ""."""
    for part in link_header.split(","):
        if 'rel="next"' in part:
            return part.split(";")[0].strip().strip("<>")
    return ""


def get_paginated(
    session: requests.Session,
    url: str,
    params: Optional[dict] = None,
    page_param: str = "per_page",
    page_size: int = 100,
) -> list[dict]:
    """Fetch all pages from a list endpoint. Any non-2xx status raises."""
    results: list[dict] = []
    params = dict(params or {})
    params.setdefault(page_param, str(page_size))

    while url:
        resp = session.get(url, params=params, timeout=DEFAULT_TIMEOUT_S)
        resp.raise_for_status()
        data = resp.json()
        if isinstance(data, list):
            results.extend(data)
        else:
            results.append(data)

        # The next URL already carries the query string.
        url = next_link(resp.headers.get("Link", ""))
        params = {}
    return results

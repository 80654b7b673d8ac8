"""Okta users API client."""

from __future__ import annotations

import logging
from typing import Optional

import requests

from scripts.opsync.clients.http import get_paginated
from scripts.opsync.config import OktaConfig

logger = logging.getLogger("opsync.okta")


class OktaClient:
    def __init__(self, config: OktaConfig, session: Optional[requests.Session] = None) -> None:
        domain = config.domain.removeprefix("https://").rstrip("/")
        self._base = f"https://{domain}/api/v1"
        self._session = session or requests.Session()
        self._session.headers.update({
            "Authorization": f"SSWS {config.token}",
            "Accept": "application/json",
        })

    def list_users(self) -> list[dict]:
        """Every user that is not deprovisioned, across all pages."""
        users = get_paginated(
            self._session, f"{self._base}/users", page_param="limit", page_size=200
        )
        logger.info("Listed %d Okta users", len(users))
        return users

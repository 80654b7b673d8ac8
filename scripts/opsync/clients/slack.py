"""Slack Web API client (billing information only)."""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from scripts.opsync.clients.http import DEFAULT_TIMEOUT_S
from scripts.opsync.config import SlackConfig

logger = logging.getLogger("opsync.slack")

SLACK_API_URL = "https://slack.com/api"


class SlackApiError(RuntimeError):
    """Slack answered with ``"ok": false``."""


class SlackClient:
    def __init__(self, config: SlackConfig, session: Optional[requests.Session] = None) -> None:
        self._session = session or requests.Session()
        self._session.headers.update({"Authorization": f"Bearer {config.token}"})

    def _call(self, method: str, params: Optional[dict] = None) -> dict[str, Any]:
        resp = self._session.get(
            f"{SLACK_API_URL}/{method}", params=params, timeout=DEFAULT_TIMEOUT_S
        )
        resp.raise_for_status()
        data = resp.json()
        if not data.get("ok"):
            raise SlackApiError(f"slack {method} failed: {data.get('error', 'unknown error')}")
        return data

    def billable_info(self) -> dict[str, dict[str, Any]]:
        """user id -> {"billing_active": bool}, following cursor pagination."""
        info: dict[str, dict[str, Any]] = {}
        params: dict[str, Any] = {"limit": 500}
        while True:
            data = self._call("team.billableInfo", params)
            info.update(data.get("billable_info", {}))
            cursor = (data.get("response_metadata") or {}).get("next_cursor")
            if not cursor:
                break
            params["cursor"] = cursor
        return info

    def billable_active_count(self) -> int:
        count = sum(1 for user in self.billable_info().values() if user.get("billing_active"))
        logger.info("Slack has %d billing-active users", count)
        return count

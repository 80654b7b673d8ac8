"""GitHub REST client: organisation seats and repository file contents."""

from __future__ import annotations

import base64
import logging
from typing import Optional

import requests

from scripts.opsync.clients.http import DEFAULT_TIMEOUT_S
from scripts.opsync.config import GitHubConfig

logger = logging.getLogger("opsync.github")


class GitHubClient:
    def __init__(self, config: GitHubConfig, session: Optional[requests.Session] = None) -> None:
        self.org = config.org
        self._base = config.api_base_url.rstrip("/")
        self._session = session or requests.Session()
        self._session.headers.update({
            "Authorization": f"token {config.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        })

    def _get(self, path: str) -> dict:
        resp = self._session.get(f"{self._base}{path}", timeout=DEFAULT_TIMEOUT_S)
        resp.raise_for_status()
        return resp.json()

    def get_org(self) -> dict:
        return self._get(f"/orgs/{self.org}")

    def filled_seats(self) -> int:
        """Seats in use on the organisation's plan.

        The plan is only visible to organisation owners, so a token without
        that access is an error rather than a zero count.
        """
        plan = self.get_org().get("plan")
        if not plan or "filled_seats" not in plan:
            raise RuntimeError(
                f"GitHub org {self.org} plan is not visible to this token"
            )
        seats = int(plan["filled_seats"])
        logger.info("GitHub org %s has %d filled seats", self.org, seats)
        return seats

    def get_file_content(self, repo: str, path: str) -> bytes:
        """Raw bytes of ``path`` in ``<org>/<repo>`` on the default branch."""
        data = self._get(f"/repos/{self.org}/{repo}/contents/{path}")
        if data.get("encoding") != "base64":
            raise RuntimeError(
                f"unexpected encoding {data.get('encoding')!r} for {repo}/{path}"
            )
        return base64.b64decode(data.get("content", ""))

"""Google Workspace directory client via the Admin SDK."""

from __future__ import annotations

import logging

from googleapiclient.discovery import build

from scripts.opsync.config import GoogleWorkspaceConfig
from scripts.opsync.secrets import google_credentials

logger = logging.getLogger("opsync.google_workspace")


class GoogleWorkspaceClient:
    def __init__(self, config: GoogleWorkspaceConfig, service=None) -> None:
        self._customer_id = config.customer_id
        if service is None:
            creds = google_credentials(config.credential_file, config.subject)
            service = build("admin", "directory_v1", credentials=creds, cache_discovery=False)
        self._service = service

    def list_users(self) -> list[dict]:
        users: list[dict] = []
        request = self._service.users().list(
            customer=self._customer_id,
            maxResults=500,
            orderBy="email",
        )
        while request is not None:
            response = request.execute()
            users.extend(response.get("users", []))
            request = self._service.users().list_next(request, response)
        logger.info("Listed %d Google Workspace users", len(users))
        return users

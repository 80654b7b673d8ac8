"""Minimal Airtable REST client: list, get and update records."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterator, Optional
from urllib.parse import quote

import requests

from scripts.opsync.config import AirtableConfig

logger = logging.getLogger("opsync.airtable")


class AirtableApiError(RuntimeError):
    """Airtable returned a non-success status or a malformed payload."""


@dataclass(frozen=True)
class AirtableRecord:
    id: str
    fields: dict[str, Any]


class AirtableClient:
    """One client per Airtable base."""

    def __init__(
        self,
        token: str,
        base_id: str,
        *,
        session: Optional[requests.Session] = None,
        api_base_url: str = "https://api.airtable.com/v0",
        timeout_s: int = 30,
    ) -> None:
        self._base_id = base_id
        self._base_url = api_base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._session = session or requests.Session()
        self._session.headers.update({
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        })

    @classmethod
    def for_base(cls, config: AirtableConfig, base_id: str, **kwargs) -> "AirtableClient":
        return cls(config.token, base_id, api_base_url=config.api_base_url, **kwargs)

    def _table_url(self, table: str) -> str:
        return f"{self._base_url}/{self._base_id}/{quote(table, safe='')}"

    def _request(self, method: str, url: str, **kwargs) -> dict[str, Any]:
        resp = self._session.request(method, url, timeout=self._timeout_s, **kwargs)
        if not 200 <= resp.status_code < 300:
            raise AirtableApiError(
                f"Airtable {method} {url} failed {resp.status_code}: {resp.text}"
            )
        return resp.json()

    def iter_records(self, table: str, view: Optional[str] = None) -> Iterator[AirtableRecord]:
        """Yield every record of ``table``, following 'offset' pagination."""
        url = self._table_url(table)
        params: dict[str, Any] = {"pageSize": 100}
        if view:
            params["view"] = view

        while True:
            payload = self._request("GET", url, params=dict(params))
            for rec in payload.get("records") or []:
                if not rec.get("id"):
                    raise AirtableApiError(f"Airtable returned a record without 'id' in {table}")
                yield AirtableRecord(id=rec["id"], fields=rec.get("fields") or {})

            offset = payload.get("offset")
            if not offset:
                break
            params["offset"] = offset

    def list_records(self, table: str, view: Optional[str] = None) -> list[AirtableRecord]:
        records = list(self.iter_records(table, view))
        logger.info("Listed %d records from Airtable table %s", len(records), table)
        return records

    def get_record(self, table: str, record_id: str) -> AirtableRecord:
        payload = self._request("GET", f"{self._table_url(table)}/{record_id}")
        return AirtableRecord(id=payload["id"], fields=payload.get("fields") or {})

    def update_record(self, table: str, record_id: str, fields: dict[str, Any]) -> AirtableRecord:
        """PATCH only the given fields of one record."""
        payload = self._request(
            "PATCH",
            f"{self._table_url(table)}/{record_id}",
            json={"fields": fields, "typecast": True},
        )
        return AirtableRecord(id=payload["id"], fields=payload.get("fields") or {})

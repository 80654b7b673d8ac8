"""Fakes for the external collaborators of the sync jobs."""

from __future__ import annotations

import dataclasses
import json
from contextlib import contextmanager
from typing import Any, Optional

import requests

from scripts.opsync.clients.airtable import AirtableRecord
from scripts.opsync.db import Database
from scripts.opsync.models import NewSoftwareVendor, SoftwareVendor, column_values


class InMemoryStore:
    """Dict-backed stand-in for RecordStore with the same upsert semantics."""

    def __init__(self, new_cls=NewSoftwareVendor, row_cls=SoftwareVendor) -> None:
        self.new_cls = new_cls
        self.row_cls = row_cls
        self.rows: dict[str, Any] = {}
        self._next_id = 1
        self.updates = 0

    def get_by_key(self, key: str):
        row = self.rows.get(key)
        return dataclasses.replace(row) if row else None

    def upsert(self, entity):
        values = column_values(entity, self.new_cls)
        existing = self.rows.get(entity.key)
        if existing is None:
            row = self.row_cls(**values, id=self._next_id)
            self._next_id += 1
        else:
            row = dataclasses.replace(existing, **values)
        self.rows[entity.key] = row
        return dataclasses.replace(row)

    def update(self, row) -> None:
        self.rows[row.key] = dataclasses.replace(row)
        self.updates += 1

    def upsert_linked(self, entity, remote_id: str):
        snapshot = dict(self.rows)
        try:
            row = self.upsert(entity)
            if not row.airtable_record_id:
                row.airtable_record_id = remote_id
            self.update(row)
        except Exception:
            self.rows = snapshot
            raise
        return row


class FakeResp:
    def __init__(
        self,
        status_code: int = 200,
        payload: Any = None,
        text: str = "",
        headers: Optional[dict] = None,
    ) -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text or json.dumps(payload)
        self.headers = headers or {}

    def json(self):
        return self._payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)


class FakeSession:
    """Replays queued responses and records every call."""

    def __init__(self, responses: list[FakeResp]) -> None:
        self.headers: dict[str, str] = {}
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        return self.responses.pop(0)

    def get(self, url, **kwargs):
        return self.request("GET", url, **kwargs)


class DummyCursor:
    def __init__(self, fetchone_result=None, rowcount: int = 1) -> None:
        self.executed: list[tuple[str, Any]] = []
        self.fetchone_result = fetchone_result
        self.rowcount = rowcount

    def execute(self, sql, params=None) -> None:
        self.executed.append((sql, params))

    def fetchone(self):
        return self.fetchone_result

    def fetchall(self):
        return []


class FakeDatabase(Database):
    """Database without a pool: transactions share one DummyCursor and are
    counted as committed or rolled back; runs are recorded."""

    def __init__(self, cursor: Optional[DummyCursor] = None) -> None:
        self.cursor = cursor or DummyCursor()
        self.runs: dict[str, dict[str, Any]] = {}
        self.commits = 0
        self.rollbacks = 0

    @contextmanager
    def transaction(self):
        try:
            yield self.cursor
        except Exception:
            self.rollbacks += 1
            raise
        self.commits += 1

    def close(self) -> None:
        pass

    def record_run_start(self, job, metadata=None) -> str:
        run_id = f"run-{len(self.runs) + 1}"
        self.runs[run_id] = {"job": job, "status": "RUNNING", "metadata": metadata or {}}
        return run_id

    def record_run_end(self, run_id, status, records_upserted=0, error_message=None, error_detail=None) -> None:
        self.runs[run_id].update(
            status=status,
            records_upserted=records_upserted,
            error_message=error_message,
        )


def vendor_record(record_id: str, **fields) -> AirtableRecord:
    return AirtableRecord(id=record_id, fields=fields)


"""Match-by-key reconciliation of Airtable records into the local store.

Records are processed one at a time. The first failure (decode, enrichment,
store) propagates: rows written before it stay written, later records are
not touched.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Optional, Protocol

from scripts.opsync.clients.airtable import AirtableClient, AirtableRecord

logger = logging.getLogger("opsync.reconcile")


class Store(Protocol):
    def get_by_key(self, key: str) -> Any: ...
    def upsert(self, entity: Any) -> Any: ...
    def update(self, row: Any) -> None: ...
    def upsert_linked(self, entity: Any, remote_id: str) -> Any: ...


class Sink(Protocol):
    def push(self, row: Any) -> None: ...


def reconcile(
    records: Iterable[AirtableRecord],
    decode: Callable[[dict[str, Any]], Any],
    store: Store,
    enrich: Optional[Callable[[Any], None]] = None,
    sink: Optional[Sink] = None,
) -> list[Any]:
    """Upsert each remote record by natural key. Returns the stored rows."""
    rows = []
    for record in records:
        entity = decode(record.fields)
        if enrich is not None:
            enrich(entity)

        # Upsert and linkage back-fill commit together.
        row = store.upsert_linked(entity, record.id)

        if sink is not None:
            sink.push(row)
        logger.debug("Reconciled %s (%s)", entity.key, record.id)
        rows.append(row)
    return rows


class AirtableWriteBack:
    """Mirrors locally computed fields onto the linked Airtable record."""

    def __init__(self, client: AirtableClient, table: str, fields: list[str]) -> None:
        self.client = client
        self.table = table
        self.fields = fields

    def push(self, row: Any) -> None:
        self.client.update_record(
            self.table,
            row.airtable_record_id,
            {name: getattr(row, name) for name in self.fields},
        )

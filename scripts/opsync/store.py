"""Local record store keyed by natural identifiers."""

from __future__ import annotations

import logging
from typing import Generic, Optional, TypeVar

from scripts.opsync.db import Database
from scripts.opsync.models import (
    Group,
    NewGroup,
    NewSoftwareVendor,
    SoftwareVendor,
    column_values,
    row_from_mapping,
)

logger = logging.getLogger("opsync.store")

RowT = TypeVar("RowT")


class RecordStore(Generic[RowT]):
    """get_by_key / upsert / update for one table.

    ``new_cls`` describes the columns written on upsert; ``row_cls`` adds
    ``id`` and ``airtable_record_id``. The linkage column is only written by
    update() and upsert_linked(), so a plain upsert never clears it.
    """

    def __init__(self, db: Database, table: str, new_cls, row_cls, key: str = "name") -> None:
        self.db = db
        self.table = table
        self.new_cls = new_cls
        self.row_cls = row_cls
        self.key = key

    def get_by_key(self, key: str) -> Optional[RowT]:
        with self.db.transaction() as cur:
            cur.execute(
                f"SELECT * FROM {self.table} WHERE {self.key} = %s", (key,)
            )
            return row_from_mapping(self.row_cls, cur.fetchone())

    def upsert(self, entity) -> RowT:
        with self.db.transaction() as cur:
            return self._upsert(cur, entity)

    def update(self, row: RowT) -> None:
        with self.db.transaction() as cur:
            self._update(cur, row)

    def upsert_linked(self, entity, remote_id: str) -> RowT:
        """Upsert ``entity`` and back-fill its linkage in one transaction.

        An existing ``airtable_record_id`` is kept. If the linkage write
        fails, the upsert is rolled back with it.
        """
        with self.db.transaction() as cur:
            row = self._upsert(cur, entity)
            if not row.airtable_record_id:
                row.airtable_record_id = remote_id
            self._update(cur, row)
        return row

    def _upsert(self, cur, entity) -> RowT:
        values = column_values(entity, self.new_cls)
        update = [c for c in values if c != self.key]
        row = self.db.upsert_returning(cur, self.table, values, [self.key], update)
        return row_from_mapping(self.row_cls, row)

    def _update(self, cur, row: RowT) -> None:
        values = column_values(row, self.row_cls)
        row_id = values.pop("id")
        assignments = ", ".join(f"{c} = %s" for c in values)
        cur.execute(
            f"UPDATE {self.table} SET {assignments}, updated_at = NOW() WHERE id = %s",
            [*values.values(), row_id],
        )
        if cur.rowcount != 1:
            raise LookupError(f"{self.table} row {row_id} does not exist")
        logger.debug("Updated %s %s", self.table, getattr(row, self.key))


def vendor_store(db: Database) -> RecordStore[SoftwareVendor]:
    return RecordStore(db, "software_vendors", NewSoftwareVendor, SoftwareVendor)


def group_store(db: Database) -> RecordStore[Group]:
    return RecordStore(db, "groups", NewGroup, Group)

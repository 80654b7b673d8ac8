"""Sync jobs: each one reconciles one Airtable table into the local store."""

from __future__ import annotations

import logging
import time
import traceback
from abc import ABC, abstractmethod
from typing import Optional

from scripts.opsync.clients.airtable import AirtableClient
from scripts.opsync.config import OpsConfig
from scripts.opsync.db import Database
from scripts.opsync.models import NewGroup, NewSoftwareVendor
from scripts.opsync.reconcile import AirtableWriteBack, reconcile
from scripts.opsync.store import group_store, vendor_store

logger = logging.getLogger("opsync.jobs")


class BaseJob(ABC):
    """Each job overrides run() and declares JOB_NAME.

    Clients are built in __init__, so credentials are resolved once and
    reused for every call of the run.
    """

    JOB_NAME: str = ""

    def __init__(self, config: OpsConfig, db: Database) -> None:
        self.config = config
        self.db = db

    @abstractmethod
    def run(self) -> dict[str, int]:
        """Run the job. Returns {entity_type: records_upserted}."""

    def run_metadata(self) -> dict:
        """Stored with the sync_runs row."""
        return {}

    def run_with_tracking(self) -> dict[str, int]:
        """Wrap run() with sync_runs tracking. Failures are recorded, then re-raised."""
        run_id = self.db.record_run_start(job=self.JOB_NAME, metadata=self.run_metadata())
        started = time.monotonic()
        try:
            results = self.run()
        except Exception as exc:
            self.db.record_run_end(
                run_id=run_id,
                status="FAILED",
                error_message=str(exc)[:1000],
                error_detail={"traceback": traceback.format_exc()},
            )
            logger.error(
                "Sync failed: %s",
                exc,
                extra={"job": self.JOB_NAME, "run_id": run_id},
            )
            raise

        total = sum(results.values())
        self.db.record_run_end(run_id=run_id, status="SUCCESS", records_upserted=total)
        logger.info(
            "Sync complete",
            extra={
                "job": self.JOB_NAME,
                "records": total,
                "run_id": run_id,
                "duration_s": round(time.monotonic() - started, 3),
            },
        )
        return results


class SoftwareVendorsJob(BaseJob):
    JOB_NAME = "software_vendors"

    def __init__(
        self,
        config: OpsConfig,
        db: Database,
        *,
        write_back: bool = False,
        enricher=None,
        finance: Optional[AirtableClient] = None,
    ) -> None:
        super().__init__(config, db)
        at = config.airtable
        self.finance = finance or AirtableClient.for_base(at, at.finance_base_id)
        self.vendors = vendor_store(db)
        self.enricher = enricher or self._build_enricher()
        self.sink = None
        if write_back:
            self.sink = AirtableWriteBack(self.finance, at.vendors_table, ["users"])

    def run_metadata(self) -> dict:
        at = self.config.airtable
        return {"base_id": at.finance_base_id, "table": at.vendors_table, "write_back": self.sink is not None}

    def _build_enricher(self):
        from scripts.opsync.clients.github import GitHubClient
        from scripts.opsync.clients.google_workspace import GoogleWorkspaceClient
        from scripts.opsync.clients.okta import OktaClient
        from scripts.opsync.clients.slack import SlackClient
        from scripts.opsync.enrichment import VendorEnricher

        at = self.config.airtable
        return VendorEnricher.from_clients(
            github=GitHubClient(self.config.github),
            okta=OktaClient(self.config.okta),
            google_workspace=GoogleWorkspaceClient(self.config.google_workspace),
            slack=SlackClient(self.config.slack),
            groups=group_store(self.db),
            directory=AirtableClient.for_base(at, at.directory_base_id),
            groups_table=at.groups_table,
        )

    def run(self) -> dict[str, int]:
        at = self.config.airtable
        records = self.finance.list_records(at.vendors_table, view=at.view)
        rows = reconcile(
            records,
            NewSoftwareVendor.from_airtable_fields,
            self.vendors,
            enrich=self.enricher,
            sink=self.sink,
        )
        return {"software_vendors": len(rows)}


class GroupsJob(BaseJob):
    JOB_NAME = "groups"

    def __init__(
        self,
        config: OpsConfig,
        db: Database,
        *,
        directory: Optional[AirtableClient] = None,
    ) -> None:
        super().__init__(config, db)
        at = config.airtable
        self.directory = directory or AirtableClient.for_base(at, at.directory_base_id)
        self.groups = group_store(db)

    def run_metadata(self) -> dict:
        at = self.config.airtable
        return {"base_id": at.directory_base_id, "table": at.groups_table}

    def run(self) -> dict[str, int]:
        at = self.config.airtable
        records = self.directory.list_records(at.groups_table, view=at.view)
        rows = reconcile(records, NewGroup.from_airtable_fields, self.groups)
        return {"groups": len(rows)}


# Run order for "all": vendor enrichment reads the local "all" group.
JOB_REGISTRY: dict[str, type[BaseJob]] = {
    GroupsJob.JOB_NAME: GroupsJob,
    SoftwareVendorsJob.JOB_NAME: SoftwareVendorsJob,
}


def get_job(name: str, config: OpsConfig, db: Database, **kwargs) -> BaseJob:
    cls = JOB_REGISTRY.get(name)
    if cls is None:
        raise ValueError(f"unknown job {name!r}; choose from {sorted(JOB_REGISTRY)}")
    return cls(config, db, **kwargs)

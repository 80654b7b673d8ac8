"""GCP Cloud Run Job entry point for the sync jobs.

Deployed as Cloud Run Jobs triggered by Cloud Scheduler. The OPSYNC_JOB env
var names the job to run ("all" runs every job in registry order).

Usage:
  OPSYNC_JOB=groups python -m scripts.opsync.entrypoints.gcp_cloudrun
  OPSYNC_JOB=software_vendors python -m scripts.opsync.entrypoints.gcp_cloudrun
"""

from __future__ import annotations

import logging
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "..", ".."))

from scripts.opsync.config import load_config
from scripts.opsync.db import Database
from scripts.opsync.logging_config import configure_logging

logger = logging.getLogger("opsync.cloudrun")


def main() -> None:
    configure_logging()

    job = os.environ.get("OPSYNC_JOB", "")
    if not job:
        logger.error("OPSYNC_JOB env var is required")
        sys.exit(1)

    logger.info("Cloud Run Job started for job=%s", job)

    try:
        from scripts.opsync.cli import run_jobs
        from scripts.opsync.jobs import JOB_REGISTRY

        config = load_config()
        db = Database(config.database)
        try:
            names = list(JOB_REGISTRY) if job == "all" else [job]
            results = run_jobs(names, config, db)
        finally:
            db.close()
        logger.info("Sync complete for %s: %s", job, results)
    except Exception as exc:
        logger.error("Sync failed for %s: %s", job, exc, exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()

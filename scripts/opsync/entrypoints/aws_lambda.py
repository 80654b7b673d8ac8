"""AWS Lambda handler for the sync jobs.

Deployed as Lambda functions triggered by EventBridge rules.
Each invocation runs one job, or every job for "all".

Event format:
  {"job": "groups"}
  {"job": "software_vendors", "write_back": true}
  {"job": "all"}
"""

from __future__ import annotations

import json
import logging
import os
import sys

# Ensure the project root is on sys.path for Lambda packaging
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "..", ".."))

from scripts.opsync.config import load_config
from scripts.opsync.db import Database
from scripts.opsync.logging_config import configure_logging

logger = logging.getLogger("opsync.lambda")


def handler(event: dict, context) -> dict:
    """Lambda entry point."""
    configure_logging()

    from scripts.opsync.cli import run_jobs
    from scripts.opsync.jobs import JOB_REGISTRY

    job = event.get("job", "")
    if job != "all" and job not in JOB_REGISTRY:
        return {"statusCode": 400, "body": f"Unknown or missing 'job' in event: {job!r}"}

    logger.info("Lambda invoked for job=%s", job)

    try:
        config = load_config()
        db = Database(config.database)
        try:
            names = list(JOB_REGISTRY) if job == "all" else [job]
            results = run_jobs(names, config, db, write_back=bool(event.get("write_back")))
        finally:
            db.close()
    except Exception as exc:
        logger.error("Sync failed for %s: %s", job, exc, exc_info=True)
        return {
            "statusCode": 500,
            "body": json.dumps({"job": job, "error": str(exc)}),
        }

    logger.info("Sync complete for %s: %s", job, results)
    return {
        "statusCode": 200,
        "body": json.dumps({"job": job, "results": results}),
    }

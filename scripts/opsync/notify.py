"""Slack incoming-webhook notifications.

Delivery problems are logged and never raised: a failed notification must
not fail the sync that produced it.
"""

from __future__ import annotations

import logging
from typing import Any

import requests

logger = logging.getLogger("opsync.notify")

WEBHOOK_TIMEOUT_S = 10


def post_to_channel(url: str, payload: dict[str, Any]) -> bool:
    """POST ``payload`` as JSON to a Slack webhook. Returns True on HTTP 200."""
    try:
        resp = requests.post(url, json=payload, timeout=WEBHOOK_TIMEOUT_S)
    except requests.RequestException as exc:
        logger.error("posting to slack webhook failed: %s", exc)
        return False

    if resp.status_code != 200:
        logger.error(
            "posting to slack webhook failed, status: %s | resp: %s",
            resp.status_code,
            resp.text,
        )
        return False
    return True


def build_sync_summary(job: str, results: dict[str, int]) -> dict[str, Any]:
    """Slack message payload summarising one sync run."""
    lines = [f"• {entity}: {count}" for entity, count in sorted(results.items())]
    text = f"Sync `{job}` finished, records upserted:\n" + "\n".join(lines)
    return {"text": text}

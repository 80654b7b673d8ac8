"""Live seat counts for software vendors.

VENDOR_ENRICHMENT is the whole dispatch table: a vendor whose name is not a
key here is stored with the seat count Airtable already has. Adding a vendor
means adding an entry, and a new EnrichmentSource if no existing counter
applies.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable

from scripts.opsync.models import NewSoftwareVendor

logger = logging.getLogger("opsync.enrichment")


class EnrichmentSource(str, Enum):
    GITHUB_SEATS = "github_seats"
    OKTA_USERS = "okta_users"
    GOOGLE_WORKSPACE_USERS = "google_workspace_users"
    SLACK_BILLABLE_USERS = "slack_billable_users"
    # Airtable, Brex, Gusto and Expensify are licensed for everyone on all@.
    ALL_GROUP_MEMBERS = "all_group_members"


VENDOR_ENRICHMENT: dict[str, EnrichmentSource] = {
    "GitHub": EnrichmentSource.GITHUB_SEATS,
    "Okta": EnrichmentSource.OKTA_USERS,
    "Google Workspace": EnrichmentSource.GOOGLE_WORKSPACE_USERS,
    "Slack": EnrichmentSource.SLACK_BILLABLE_USERS,
    "Airtable": EnrichmentSource.ALL_GROUP_MEMBERS,
    "Brex": EnrichmentSource.ALL_GROUP_MEMBERS,
    "Gusto": EnrichmentSource.ALL_GROUP_MEMBERS,
    "Expensify": EnrichmentSource.ALL_GROUP_MEMBERS,
}

Counter = Callable[[], int]


def group_member_count(groups, directory, groups_table: str, name: str = "all") -> int:
    """Members on the Airtable record linked to the local group ``name``."""
    group = groups.get_by_key(name)
    if group is None:
        raise LookupError(f"group {name!r} is not in the local store")
    if not group.airtable_record_id:
        raise LookupError(f"group {name!r} has no Airtable record linked")
    record = directory.get_record(groups_table, group.airtable_record_id)
    return len(record.fields.get("members") or [])


class VendorEnricher:
    """Sets ``users`` on vendors named in VENDOR_ENRICHMENT."""

    def __init__(self, counters: dict[EnrichmentSource, Counter]) -> None:
        self._counters = counters

    @classmethod
    def from_clients(cls, *, github, okta, google_workspace, slack, groups, directory, groups_table):
        return cls({
            EnrichmentSource.GITHUB_SEATS: github.filled_seats,
            EnrichmentSource.OKTA_USERS: lambda: len(okta.list_users()),
            EnrichmentSource.GOOGLE_WORKSPACE_USERS: lambda: len(google_workspace.list_users()),
            EnrichmentSource.SLACK_BILLABLE_USERS: slack.billable_active_count,
            EnrichmentSource.ALL_GROUP_MEMBERS: lambda: group_member_count(
                groups, directory, groups_table
            ),
        })

    def __call__(self, vendor: NewSoftwareVendor) -> None:
        source = VENDOR_ENRICHMENT.get(vendor.name)
        if source is None:
            return
        vendor.users = self._counters[source]()
        logger.info(
            "Enriched %s from %s: %d users",
            vendor.name, source.value, vendor.users,
            extra={"vendor": vendor.name},
        )

"""Configuration via environment variables with cloud-native secret support.

Built once at process start and passed to every job and client. Token
values may be plain strings or secret references:
  - aws-secret://name#key  (AWS Secrets Manager)
  - gcp-secret://name      (GCP Secret Manager)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from scripts.opsync.secrets import resolve_database_url, resolve_secret

REQUIRED_VARS = [
    "AIRTABLE_API_KEY",
    "AIRTABLE_BASE_ID_FINANCE",
    "AIRTABLE_BASE_ID_DIRECTORY",
    "GADMIN_ACCOUNT_ID",
    "GADMIN_SUBJECT",
    "OKTA_DOMAIN",
    "OKTA_API_TOKEN",
    "SLACK_TOKEN",
    "SLACK_HIRING_CHANNEL_POST_URL",
    "SLACK_PUBLIC_RELATIONS_CHANNEL_POST_URL",
    "GITHUB_TOKEN",
    "GITHUB_ORG",
]


@dataclass(frozen=True)
class DatabaseConfig:
    url: str
    min_connections: int = 1
    max_connections: int = 4


@dataclass(frozen=True)
class AirtableConfig:
    token: str
    finance_base_id: str
    directory_base_id: str
    vendors_table: str = "Software Vendors"
    groups_table: str = "Groups"
    view: str = "Grid view"
    api_base_url: str = "https://api.airtable.com/v0"


@dataclass(frozen=True)
class GoogleWorkspaceConfig:
    customer_id: str
    subject: str
    credential_file: Optional[str] = None  # None = use Application Default Credentials


@dataclass(frozen=True)
class OktaConfig:
    domain: str
    token: str


@dataclass(frozen=True)
class SlackConfig:
    token: str
    hiring_channel_post_url: str
    public_relations_channel_post_url: str

    def channel_post_url(self, channel: str) -> str:
        urls = {
            "hiring": self.hiring_channel_post_url,
            "public_relations": self.public_relations_channel_post_url,
        }
        if channel not in urls:
            raise ValueError(f"unknown slack channel {channel!r}")
        return urls[channel]


@dataclass(frozen=True)
class GitHubConfig:
    token: str
    org: str
    api_base_url: str = "https://api.github.com"


@dataclass(frozen=True)
class OpsConfig:
    database: DatabaseConfig
    airtable: AirtableConfig
    google_workspace: GoogleWorkspaceConfig
    okta: OktaConfig
    slack: SlackConfig
    github: GitHubConfig


def load_config() -> OpsConfig:
    """Load configuration from environment variables.

    Every variable in REQUIRED_VARS must be set; the error names all of the
    missing ones at once.
    """
    load_dotenv()

    missing = [name for name in REQUIRED_VARS if not os.environ.get(name)]
    if missing:
        raise ValueError(
            "missing required environment variables: " + ", ".join(missing)
        )
    env = os.environ

    database = DatabaseConfig(
        url=resolve_database_url(),
        min_connections=int(env.get("DB_MIN_CONNECTIONS", "1")),
        max_connections=int(env.get("DB_MAX_CONNECTIONS", "4")),
    )

    airtable = AirtableConfig(
        token=resolve_secret(env["AIRTABLE_API_KEY"]),
        finance_base_id=env["AIRTABLE_BASE_ID_FINANCE"],
        directory_base_id=env["AIRTABLE_BASE_ID_DIRECTORY"],
        view=env.get("AIRTABLE_VIEW", "Grid view"),
    )

    google_workspace = GoogleWorkspaceConfig(
        customer_id=env["GADMIN_ACCOUNT_ID"],
        subject=env["GADMIN_SUBJECT"],
        credential_file=env.get("GADMIN_CREDENTIAL_FILE") or None,
    )

    okta = OktaConfig(
        domain=env["OKTA_DOMAIN"],
        token=resolve_secret(env["OKTA_API_TOKEN"]),
    )

    slack = SlackConfig(
        token=resolve_secret(env["SLACK_TOKEN"]),
        hiring_channel_post_url=env["SLACK_HIRING_CHANNEL_POST_URL"],
        public_relations_channel_post_url=env["SLACK_PUBLIC_RELATIONS_CHANNEL_POST_URL"],
    )

    github = GitHubConfig(
        token=resolve_secret(env["GITHUB_TOKEN"]),
        org=env["GITHUB_ORG"],
        api_base_url=env.get("GITHUB_API_BASE_URL", "https://api.github.com"),
    )

    return OpsConfig(
        database=database,
        airtable=airtable,
        google_workspace=google_workspace,
        okta=okta,
        slack=slack,
        github=github,
    )

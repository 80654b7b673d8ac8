"""Credential resolution for the external APIs.

Secret values come from the environment, optionally as references into AWS
Secrets Manager or GCP Secret Manager. Google service-account credentials
are built here too, once per run.
"""

from __future__ import annotations

import json
import logging
import os

logger = logging.getLogger("opsync.secrets")

_AWS_PREFIX = "aws-secret://"
_GCP_PREFIX = "gcp-secret://"

# Directory API scopes needed to count users and read groups.
GSUITE_SCOPES = [
    "https://www.googleapis.com/auth/admin.directory.group.readonly",
    "https://www.googleapis.com/auth/admin.directory.user.readonly",
]


def resolve_secret(value: str) -> str:
    """Resolve a secret reference to its plaintext value.

      - "aws-secret://name" or "aws-secret://name#json_key"
      - "gcp-secret://projects/P/secrets/N/versions/V" or "gcp-secret://N"
      - anything else is returned unchanged
    """
    if value.startswith(_AWS_PREFIX):
        return _resolve_aws_secret(value[len(_AWS_PREFIX):])
    if value.startswith(_GCP_PREFIX):
        return _resolve_gcp_secret(value[len(_GCP_PREFIX):])
    return value


def _resolve_aws_secret(ref: str) -> str:
    import boto3

    secret_name, _, json_key = ref.partition("#")
    client = boto3.client(
        "secretsmanager", region_name=os.environ.get("AWS_REGION", "us-east-1")
    )
    secret_string = client.get_secret_value(SecretId=secret_name)["SecretString"]
    if json_key:
        return str(json.loads(secret_string)[json_key])
    return secret_string


def _resolve_gcp_secret(ref: str) -> str:
    from google.cloud import secretmanager

    if ref.startswith("projects/"):
        name = ref
    else:
        project = os.environ.get("GCP_PROJECT_ID", "")
        if not project:
            raise RuntimeError(
                f"GCP_PROJECT_ID must be set to resolve secret {ref!r}"
            )
        name = f"projects/{project}/secrets/{ref}/versions/latest"

    client = secretmanager.SecretManagerServiceClient()
    response = client.access_secret_version(request={"name": name})
    return response.payload.data.decode("UTF-8")


def resolve_database_url() -> str:
    """Resolve DATABASE_URL from env, falling back to PG_* variables."""
    url = os.environ.get("DATABASE_URL", "")
    if url:
        return resolve_secret(url)

    host = os.environ.get("PG_HOST", "localhost")
    port = os.environ.get("PG_PORT", "5432")
    user = os.environ.get("PG_USER", "opsync")
    password = resolve_secret(os.environ.get("PG_PASSWORD", "localdev-change-me"))
    database = os.environ.get("PG_DATABASE", "opsync")
    return f"postgresql://{user}:{password}@{host}:{port}/{database}"


def google_credentials(credential_file, subject: str):
    """Service-account credentials delegated to ``subject``.

    Without a key file the Application Default Credentials are used, which
    is what Cloud Run / Workload Identity provides.
    """
    if credential_file:
        from google.oauth2 import service_account

        creds = service_account.Credentials.from_service_account_file(
            credential_file, scopes=GSUITE_SCOPES
        )
    else:
        import google.auth

        creds, _ = google.auth.default(scopes=GSUITE_SCOPES)

    logger.debug("Built Google credentials for %s", subject)
    return creds.with_subject(subject)

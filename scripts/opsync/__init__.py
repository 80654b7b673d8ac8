"""opsync business-operations sync jobs.

Pulls records from Airtable, enriches them with live counts from provider
APIs (Google Workspace, Okta, Slack, GitHub) and upserts them into the
PostgreSQL record store.
"""

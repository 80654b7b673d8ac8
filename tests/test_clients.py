from __future__ import annotations

import base64

import pytest
import requests

from fakes import FakeResp, FakeSession
from scripts.opsync.clients.airtable import AirtableApiError, AirtableClient
from scripts.opsync.clients.github import GitHubClient
from scripts.opsync.clients.google_workspace import GoogleWorkspaceClient
from scripts.opsync.clients.http import next_link
from scripts.opsync.clients.okta import OktaClient
from scripts.opsync.clients.slack import SlackApiError, SlackClient


# ----------------------------------------------------------------------
# Airtable
# ----------------------------------------------------------------------


def test_airtable_list_follows_offset() -> None:
    session = FakeSession([
        FakeResp(200, {"records": [{"id": "rec1", "fields": {"name": "A"}}], "offset": "itr1"}),
        FakeResp(200, {"records": [{"id": "rec2"}]}),
    ])
    client = AirtableClient("tok", "appFIN", session=session)

    records = client.list_records("Software Vendors", view="Grid view")

    assert [(r.id, r.fields) for r in records] == [("rec1", {"name": "A"}), ("rec2", {})]
    assert session.calls[0]["url"] == "https://api.airtable.com/v0/appFIN/Software%20Vendors"
    assert session.calls[0]["params"]["view"] == "Grid view"
    assert session.calls[1]["params"]["offset"] == "itr1"
    assert session.headers["Authorization"] == "Bearer tok"


def test_airtable_error_status_raises() -> None:
    session = FakeSession([FakeResp(401, {"error": "AUTHENTICATION_REQUIRED"})])
    client = AirtableClient("bad", "appFIN", session=session)

    with pytest.raises(AirtableApiError, match="401"):
        client.list_records("Software Vendors")


def test_airtable_record_without_id_raises() -> None:
    session = FakeSession([FakeResp(200, {"records": [{"fields": {}}]})])
    client = AirtableClient("tok", "appFIN", session=session)

    with pytest.raises(AirtableApiError):
        client.list_records("Groups")


def test_airtable_update_record_patches_fields() -> None:
    session = FakeSession([FakeResp(200, {"id": "rec1", "fields": {"users": 5}})])
    client = AirtableClient("tok", "appFIN", session=session)

    record = client.update_record("Software Vendors", "rec1", {"users": 5})

    assert record.fields == {"users": 5}
    call = session.calls[0]
    assert call["method"] == "PATCH"
    assert call["url"].endswith("/Software%20Vendors/rec1")
    assert call["json"] == {"fields": {"users": 5}, "typecast": True}


# ----------------------------------------------------------------------
# GitHub
# ----------------------------------------------------------------------


def test_github_filled_seats(ops_config) -> None:
    session = FakeSession([FakeResp(200, {"login": "example", "plan": {"filled_seats": 23}})])
    client = GitHubClient(ops_config.github, session=session)

    assert client.filled_seats() == 23
    assert session.calls[0]["url"] == "https://api.github.com/orgs/example"


def test_github_plan_hidden_is_an_error(ops_config) -> None:
    session = FakeSession([FakeResp(200, {"login": "example"})])
    client = GitHubClient(ops_config.github, session=session)

    with pytest.raises(RuntimeError):
        client.filled_seats()


def test_github_http_error_propagates(ops_config) -> None:
    session = FakeSession([FakeResp(502, {"message": "bad gateway"})])
    client = GitHubClient(ops_config.github, session=session)

    with pytest.raises(requests.HTTPError):
        client.filled_seats()


def test_github_file_content_is_decoded(ops_config) -> None:
    body = b"num,title\n1,First\n"
    session = FakeSession([
        FakeResp(200, {"encoding": "base64", "content": base64.b64encode(body).decode()}),
    ])
    client = GitHubClient(ops_config.github, session=session)

    assert client.get_file_content("rfd", ".helpers/rfd.csv") == body
    assert session.calls[0]["url"].endswith("/repos/example/rfd/contents/.helpers/rfd.csv")


# ----------------------------------------------------------------------
# Okta
# ----------------------------------------------------------------------


def test_next_link() -> None:
    header = '<https://x/api/v1/users?after=1>; rel="self", <https://x/api/v1/users?after=2>; rel="next"'
    assert next_link(header) == "https://x/api/v1/users?after=2"
    assert next_link("") == ""


def test_okta_list_users_follows_link_header(ops_config) -> None:
    session = FakeSession([
        FakeResp(200, [{"id": "u1"}, {"id": "u2"}],
                 headers={"Link": '<https://example.okta.com/api/v1/users?after=u2>; rel="next"'}),
        FakeResp(200, [{"id": "u3"}]),
    ])
    client = OktaClient(ops_config.okta, session=session)

    users = client.list_users()

    assert [u["id"] for u in users] == ["u1", "u2", "u3"]
    assert session.calls[0]["url"] == "https://example.okta.com/api/v1/users"
    assert session.calls[0]["params"] == {"limit": "200"}
    assert session.calls[1]["params"] == {}
    assert session.headers["Authorization"] == "SSWS okta-token"


# ----------------------------------------------------------------------
# Slack
# ----------------------------------------------------------------------


def test_slack_counts_billing_active_users(ops_config) -> None:
    session = FakeSession([
        FakeResp(200, {
            "ok": True,
            "billable_info": {"U1": {"billing_active": True}, "U2": {"billing_active": False}},
            "response_metadata": {"next_cursor": "abc"},
        }),
        FakeResp(200, {"ok": True, "billable_info": {"U3": {"billing_active": True}}}),
    ])
    client = SlackClient(ops_config.slack, session=session)

    assert client.billable_active_count() == 2
    assert session.calls[1]["params"]["cursor"] == "abc"


def test_slack_not_ok_raises(ops_config) -> None:
    session = FakeSession([FakeResp(200, {"ok": False, "error": "not_allowed_token_type"})])
    client = SlackClient(ops_config.slack, session=session)

    with pytest.raises(SlackApiError, match="not_allowed_token_type"):
        client.billable_info()


# ----------------------------------------------------------------------
# Google Workspace
# ----------------------------------------------------------------------


class _Request:
    def __init__(self, response) -> None:
        self.response = response

    def execute(self):
        return self.response


class _Users:
    def __init__(self, pages) -> None:
        self.pages = pages
        self.list_kwargs = None

    def list(self, **kwargs):
        self.list_kwargs = kwargs
        return _Request(self.pages[0])

    def list_next(self, request, response):
        index = self.pages.index(response) + 1
        return _Request(self.pages[index]) if index < len(self.pages) else None


class _Service:
    def __init__(self, pages) -> None:
        self._users = _Users(pages)

    def users(self):
        return self._users


def test_google_workspace_list_users_pages(ops_config) -> None:
    service = _Service([
        {"users": [{"id": "1"}, {"id": "2"}]},
        {"users": [{"id": "3"}]},
    ])
    client = GoogleWorkspaceClient(ops_config.google_workspace, service=service)

    assert len(client.list_users()) == 3
    assert service.users().list_kwargs["customer"] == "C012"

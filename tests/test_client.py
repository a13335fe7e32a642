from __future__ import annotations

import json

import pytest
import requests
import responses

from charasheet_sync.client import CharacterSyncClient, NotionApi
from charasheet_sync.errors import UpstreamError

from .conftest import DATABASE_ID, NOTION_BASE_URL

QUERY_URL = f"{NOTION_BASE_URL}/databases/{DATABASE_ID}/query"
PROPERTIES = {"ID": {"number": 42}, "STR": {"select": {"name": "12"}}}
TITLE = {"名前": {"title": [{"text": {"content": "Foo"}}]}}


@pytest.fixture()
def notion_api() -> NotionApi:
    return NotionApi("token")


@pytest.fixture()
def sync_client(notion_api: NotionApi) -> CharacterSyncClient:
    return CharacterSyncClient(notion_api, database_id=DATABASE_ID)


@responses.activate
def test_upsert_creates_new_page(sync_client: CharacterSyncClient) -> None:
    responses.add(responses.POST, QUERY_URL, json={"results": [], "has_more": False}, status=200)
    responses.add(
        responses.POST,
        f"{NOTION_BASE_URL}/pages",
        json={"id": "new-page", "url": "https://www.notion.so/new-page"},
        status=200,
    )

    outcome = sync_client.upsert(42, PROPERTIES, title=TITLE)

    assert outcome.action == "created"
    assert outcome.page_id == "new-page"
    assert outcome.url == "https://www.notion.so/new-page"

    assert len(responses.calls) == 2
    query = json.loads(responses.calls[0].request.body)
    assert query["filter"] == {"property": "ID", "number": {"equals": 42}}
    payload = json.loads(responses.calls[1].request.body)
    assert payload["parent"] == {"database_id": DATABASE_ID}
    assert payload["properties"]["名前"]["title"][0]["text"]["content"] == "Foo"
    assert payload["properties"]["STR"] == {"select": {"name": "12"}}


@responses.activate
def test_upsert_updates_first_existing_page(sync_client: CharacterSyncClient) -> None:
    responses.add(
        responses.POST,
        QUERY_URL,
        json={
            "results": [
                {"id": "page-1", "url": "https://www.notion.so/page-1"},
                {"id": "page-2", "url": "https://www.notion.so/page-2"},
            ],
            "has_more": False,
        },
        status=200,
    )
    responses.add(
        responses.PATCH,
        f"{NOTION_BASE_URL}/pages/page-1",
        json={"id": "page-1", "url": "https://www.notion.so/page-1"},
        status=200,
    )

    outcome = sync_client.upsert(42, PROPERTIES, title=TITLE)

    assert outcome.action == "updated"
    assert outcome.page_id == "page-1"
    assert len(responses.calls) == 2
    payload = json.loads(responses.calls[1].request.body)
    assert "名前" not in payload["properties"]
    assert payload["properties"] == PROPERTIES


@responses.activate
def test_query_sends_bearer_token_and_version(sync_client: CharacterSyncClient) -> None:
    responses.add(responses.POST, QUERY_URL, json={"results": [], "has_more": False}, status=200)

    assert sync_client.find_page(42) is None

    headers = responses.calls[0].request.headers
    assert headers["Authorization"] == "Bearer token"
    assert headers["Notion-Version"] == "2022-06-28"


@responses.activate
def test_iter_database_pages_follows_cursor(notion_api: NotionApi) -> None:
    responses.add(
        responses.POST,
        QUERY_URL,
        json={"results": [{"id": "a"}], "has_more": True, "next_cursor": "cursor-2"},
        status=200,
    )
    responses.add(responses.POST, QUERY_URL, json={"results": [{"id": "b"}], "has_more": False}, status=200)

    pages = list(notion_api.iter_database_pages(DATABASE_ID, {"property": "ID", "number": {"equals": 1}}))

    assert [page["id"] for page in pages] == ["a", "b"]
    second = json.loads(responses.calls[1].request.body)
    assert second["start_cursor"] == "cursor-2"


@pytest.mark.parametrize(
    "status, code, expected_status",
    [
        (401, "unauthorized", 401),
        (403, "restricted_resource", 401),
        (404, "object_not_found", 404),
        (400, "validation_error", 500),
        (500, "internal_server_error", 500),
    ],
)
@responses.activate
def test_query_errors_are_translated(sync_client, status, code, expected_status) -> None:
    responses.add(
        responses.POST,
        QUERY_URL,
        json={"object": "error", "status": status, "code": code, "message": "Something went wrong."},
        status=status,
    )

    with pytest.raises(UpstreamError) as excinfo:
        sync_client.upsert(42, PROPERTIES)

    assert excinfo.value.status_code == expected_status
    assert excinfo.value.code == code
    assert len(responses.calls) == 1


@responses.activate
def test_write_failure_surfaces_upstream_error(sync_client: CharacterSyncClient) -> None:
    responses.add(responses.POST, QUERY_URL, json={"results": [], "has_more": False}, status=200)
    responses.add(
        responses.POST,
        f"{NOTION_BASE_URL}/pages",
        json={"object": "error", "status": 400, "code": "validation_error", "message": "STR is not a property that exists."},
        status=400,
    )

    with pytest.raises(UpstreamError) as excinfo:
        sync_client.upsert(42, PROPERTIES)

    assert "STR is not a property that exists." in str(excinfo.value)
    assert excinfo.value.status_code == 500


@responses.activate
def test_network_failure_surfaces_upstream_error(sync_client: CharacterSyncClient) -> None:
    responses.add(responses.POST, QUERY_URL, body=requests.ConnectTimeout("timed out"))

    with pytest.raises(UpstreamError) as excinfo:
        sync_client.find_page(42)

    assert excinfo.value.status_code == 500


@responses.activate
def test_non_json_success_surfaces_upstream_error(sync_client: CharacterSyncClient) -> None:
    responses.add(responses.POST, QUERY_URL, body="<html>maintenance</html>", status=200)

    with pytest.raises(UpstreamError) as excinfo:
        sync_client.find_page(42)

    assert "non-JSON" in str(excinfo.value)
    assert excinfo.value.status_code == 500

import pytest
import requests
import responses

from charasheet_sync.errors import FetchError, NotFoundError
from charasheet_sync.fetcher import CharacterSheetFetcher

from .conftest import SOURCE_BASE_URL


@pytest.fixture
def fetcher() -> CharacterSheetFetcher:
    return CharacterSheetFetcher(base_url=SOURCE_BASE_URL + "/", timeout=5)


def test_build_url_is_deterministic(fetcher):
    assert fetcher.build_url(42) == f"{SOURCE_BASE_URL}/42.js"
    assert fetcher.build_url(" 42 ") == f"{SOURCE_BASE_URL}/42.js"


def test_build_url_with_json_suffix():
    fetcher = CharacterSheetFetcher(base_url=SOURCE_BASE_URL, suffix=".json")

    assert fetcher.build_url("7") == f"{SOURCE_BASE_URL}/7.json"


@responses.activate
def test_fetch_returns_body(fetcher, sheet_script):
    responses.add(
        responses.GET,
        f"{SOURCE_BASE_URL}/42.js",
        body=sheet_script.encode("utf-8"),
        content_type="application/javascript",
    )

    assert fetcher.fetch(42) == sheet_script
    assert len(responses.calls) == 1


@responses.activate
def test_fetch_404_raises_not_found_with_id(fetcher):
    responses.add(responses.GET, f"{SOURCE_BASE_URL}/999.js", status=404)

    with pytest.raises(NotFoundError) as excinfo:
        fetcher.fetch(999)

    assert "999" in str(excinfo.value)
    assert excinfo.value.status_code == 404


@responses.activate
def test_fetch_server_error_raises_fetch_error_without_retry(fetcher):
    responses.add(responses.GET, f"{SOURCE_BASE_URL}/42.js", status=503)

    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch(42)

    assert "503" in str(excinfo.value)
    assert len(responses.calls) == 1


@responses.activate
def test_fetch_network_failure_raises_fetch_error(fetcher):
    responses.add(responses.GET, f"{SOURCE_BASE_URL}/42.js", body=requests.ConnectionError("refused"))

    with pytest.raises(FetchError):
        fetcher.fetch(42)

import json

import pytest

from charasheet_sync.config import SyncSettings

SOURCE_BASE_URL = "https://charasheet.example.test"
NOTION_BASE_URL = "https://api.notion.com/v1"
DATABASE_ID = "db1"


@pytest.fixture
def settings() -> SyncSettings:
    return SyncSettings(
        notion_api_key="secret-token",
        database_id=DATABASE_ID,
        source_base_url=SOURCE_BASE_URL,
        timeout=5,
    )


@pytest.fixture
def sheet_payload():
    return {
        "id": 42,
        "name": "Foo",
        "job": "探偵",
        "gender": "男",
        "age": "25歳",
        "height": "172cm",
        "weight": "",
        "birthplace": "東京",
        "hair_color": "黒",
        "st": 12,
        "co": 10,
        "po": 14,
        "dx": "9",
        "san": 70,
        "idea": 65,
        "luck": 70,
        "know": 80,
        "memo": "intro ※※※　以下、ネタバレ有　※※※ secret",
        "skills": [
            {"name": "目星", "value": 75},
            {"name": "聞き耳", "value": 60},
        ],
    }


@pytest.fixture
def sheet_script(sheet_payload):
    return "pc = " + json.dumps(sheet_payload, ensure_ascii=False) + ";"

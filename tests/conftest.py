import json
from datetime import datetime, timezone

import pytest

FIXED_NOW = datetime(2024, 5, 17, 12, 30, 45, 250000, tzinfo=timezone.utc)


@pytest.fixture()
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture()
def suwatte_payload():
    """A small but complete Suwatte backup in the rich layout."""
    return {
        "appVersion": "5.2.1",
        "library": [
            {
                "id": "m1",
                "collections": ["Reading"],
                "lastUpdated": "2024-01-01T00:00:00Z",
                "dateAdded": "2023-12-01T10:00:00Z",
                "lastOpened": 1704153600000,
            }
        ],
        "storedContents": [
            {
                "id": "m1",
                "sourceId": "src.en",
                "title": "Moonlit Harbor",
                "summary": "A quiet story.",
                "cover": "https://example.com/cover.jpg",
                "creators": ["Alice", "Bob"],
                "isNSFW": False,
                "status": 1,
            }
        ],
        "chapters": [
            {
                "id": "c1",
                "contentId": "m1",
                "sourceId": "src.en",
                "volume": 1,
                "number": 1,
                "language": "en",
                "title": "Arrival",
                "date": "2023-11-30T08:00:00Z",
                "index": 0,
            },
            {
                "chapterId": "c2",
                "contentId": "m1",
                "sourceId": "src.en",
                "number": 2,
                "date": "2023-12-07T08:00:00Z",
            },
        ],
        "progressMarkers": [
            {
                "chapter": {"contentId": "m1", "chapterId": "c1"},
                "lastPageRead": 10,
                "totalPageCount": 10,
                "dateRead": "2024-01-02T00:00:00Z",
            },
            {
                "chapter": {"contentId": "m1", "chapterId": "c2"},
                "lastPageRead": 9,
                "totalPageCount": 10,
            },
        ],
    }


@pytest.fixture()
def raw_backup(suwatte_payload):
    return json.dumps(suwatte_payload).encode("utf-8")

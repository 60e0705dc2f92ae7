import json

import pytest

from aidoku_converter.errors import ParseError
from aidoku_converter.models import SourceShape
from aidoku_converter.parser import parse_backup


def test_parse_rich_backup(raw_backup):
    backup = parse_backup(raw_backup)

    assert backup.shape is SourceShape.RICH
    assert backup.app_version == "5.2.1"
    assert [entry.id for entry in backup.library] == ["m1"]
    assert backup.library[0].collections == ["Reading"]

    content = backup.stored_contents[0]
    assert content.source_id == "src.en"
    assert content.creators == ["Alice", "Bob"]
    assert content.is_nsfw is False
    assert content.status == 1

    first, second = backup.chapters
    assert first.volume == 1.0
    assert first.index == 0
    assert second.id == "c2"
    assert second.language is None
    assert second.index is None

    marker = backup.progress_markers[0]
    assert marker.chapter.content_id == "m1"
    assert marker.chapter.chapter_id == "c1"
    assert marker.last_page_read == 10
    assert backup.notes == []


def test_parse_accepts_text_and_utf8_bom(suwatte_payload):
    text = json.dumps(suwatte_payload)
    assert parse_backup(text).library[0].id == "m1"
    assert parse_backup(b"\xef\xbb\xbf" + text.encode("utf-8")).library[0].id == "m1"


@pytest.mark.parametrize(
    "raw",
    [
        b"{not json",
        b"[1, 2, 3]",
        b"\xff\xfe\x00garbage",
        json.dumps({"library": {"id": "m1"}}).encode(),
        json.dumps({"library": [], "storedContents": "nope"}).encode(),
    ],
)
def test_parse_rejects_malformed_documents(raw):
    with pytest.raises(ParseError):
        parse_backup(raw)


def test_parse_error_mentions_backup_format():
    with pytest.raises(ParseError) as excinfo:
        parse_backup("{oops")
    assert "valid Suwatte backup" in str(excinfo.value)


def test_missing_collections_default_to_empty():
    backup = parse_backup('{"library": []}')
    assert backup.shape is SourceShape.RICH
    assert backup.library == []
    assert backup.chapters == []
    assert backup.progress_markers == []


def test_legacy_layout_is_detected_from_links_and_collections():
    payload = {
        "library": [{"id": "m1", "collections": ["c1"]}],
        "contentLinks": [
            {
                "id": "l1",
                "contentId": "m1",
                "sourceId": "src.legacy",
                "content": {"id": "m1", "sourceId": "src.legacy", "title": "Old Title"},
            },
            {"id": "l2", "contentId": "m9"},
        ],
        "collections": [{"id": "c1", "name": "Favourites"}],
    }
    backup = parse_backup(json.dumps(payload))

    assert backup.shape is SourceShape.LEGACY
    assert [link.content_id for link in backup.content_links] == ["m1", "m9"]
    assert backup.content_links[1].content is None
    assert [content.title for content in backup.content_records()] == ["Old Title"]
    assert backup.collections[0].name == "Favourites"


def test_unusable_records_are_skipped_with_notes():
    payload = {
        "library": [{"collections": []}, "m2", {"id": "m3"}],
        "storedContents": [{"title": "No id"}],
        "chapters": [{"id": "c1"}],
        "progressMarkers": [{"chapter": {"contentId": "m3"}, "lastPageRead": 1}],
    }
    backup = parse_backup(json.dumps(payload))

    assert [entry.id for entry in backup.library] == ["m3"]
    assert backup.stored_contents == []
    assert backup.chapters == []
    # The marker survives parsing; the mapper decides what to do with it.
    assert backup.progress_markers[0].chapter is None
    assert len(backup.notes) == 4


def test_scalar_creators_and_numeric_strings_are_coerced():
    payload = {
        "library": [],
        "storedContents": [
            {"id": 7, "creators": "Solo Artist", "status": "2", "isNSFW": 1}
        ],
        "chapters": [{"id": "c1", "contentId": 7, "number": "12.5", "index": "3"}],
    }
    backup = parse_backup(json.dumps(payload))

    content = backup.stored_contents[0]
    assert content.id == "7"
    assert content.creators == ["Solo Artist"]
    assert content.status == 2
    assert content.is_nsfw is True
    assert backup.chapters[0].number == 12.5
    assert backup.chapters[0].index == 3


@pytest.mark.parametrize("raw", ["{}", '{"storedContents": []}', '{"library": "m1"}', '{"library": null}'])
def test_library_array_is_required(raw):
    with pytest.raises(ParseError) as excinfo:
        parse_backup(raw)
    assert str(excinfo.value) == "Invalid backup: Missing library entries"


def test_out_of_range_numbers_are_clamped():
    payload = {
        "library": [],
        "storedContents": [{"id": "m1", "status": 10**30}],
        "chapters": [{"id": "c1", "contentId": "m1", "index": -(10**30), "volume": 10**400}],
        "progressMarkers": [{"lastPageRead": 10**30, "totalPageCount": 1e400}],
    }
    backup = parse_backup(json.dumps(payload))

    assert backup.stored_contents[0].status == 2**63 - 1
    assert backup.chapters[0].index == -(2**63)
    assert backup.chapters[0].volume is None
    assert backup.progress_markers[0].last_page_read == 2**63 - 1
    assert backup.progress_markers[0].total_page_count == 0

import json
from datetime import date, datetime, timezone
from typing import List

import pytest
from pydantic import BaseModel
from restcore.core.decoding import (
    DateOnly,
    TolerantDateTime,
    decode,
    decode_tagged,
    decode_value,
)
from restcore.core.errors import DecodeError
from restcore.models import (
    CONTENT_VARIANTS,
    ContentFile,
    ContentSubmodule,
    ContentSymlink,
    DirectoryEntry,
    Event,
    EventSeverity,
    Group,
    GroupType,
    Repository,
    RepoVisibility,
)


class Window(BaseModel):
    starts: DateOnly = None
    seen_at: TolerantDateTime = None


def test_missing_and_null_fields_take_defaults():
    repo = decode(b'{"id": null, "name": null, "private": null, "topics": null}', Repository)
    assert repo.id == 0
    assert repo.name == ""
    assert repo.private is False
    assert repo.topics == []
    assert repo.owner is None
    assert repo.visibility is RepoVisibility.NOOP

    empty = decode(b"{}", Repository)
    assert empty == repo


def test_explicit_zero_and_empty_match_defaults():
    repo = decode_value({"id": 0, "name": "", "topics": []}, Repository)
    assert repo == decode_value({}, Repository)


def test_unknown_keys_are_ignored():
    repo = decode_value({"name": "x", "brand_new_field": {"a": 1}}, Repository)
    assert repo.name == "x"


def test_default_filled_value_round_trips():
    first = decode_value(
        {"name": "x", "visibility": "something-new", "created_at": None}, Repository
    )
    again = decode(json.dumps(first.model_dump(mode="json")), Repository)
    assert again == first


@pytest.mark.parametrize("raw", ["public", "private", "internal"])
def test_known_enum_values(raw):
    assert decode_value({"visibility": raw}, Repository).visibility.value == raw


@pytest.mark.parametrize("raw", ["brand-new", "PUBLIC", "*"])
def test_unknown_enum_value_falls_through(raw):
    repo = decode_value({"visibility": raw}, Repository)
    assert repo.visibility is RepoVisibility.FALLTHROUGH
    assert repo.visibility.is_unrecognized()


def test_empty_enum_is_noop_not_fallthrough():
    group = decode_value({"type": ""}, Group)
    assert group.type is GroupType.NOOP
    assert group.type.is_noop()
    assert not group.type.is_unrecognized()


def test_non_string_enum_is_a_decode_error():
    with pytest.raises(DecodeError) as exc:
        decode_value({"type": 7}, Group)
    assert exc.value.path == "type"


def test_enum_coerce_directly():
    assert EventSeverity.coerce(None) is EventSeverity.NOOP
    assert EventSeverity.coerce("error") is EventSeverity.ERROR
    assert EventSeverity("unheard-of") is EventSeverity.FALLTHROUGH


def test_date_only_fields():
    assert decode_value({"starts": "2024-02-29"}, Window).starts == date(2024, 2, 29)
    assert decode_value({"starts": ""}, Window).starts is None
    assert decode_value({"starts": None}, Window).starts is None


@pytest.mark.parametrize("raw", ["2023-02-29", "2024/01/01", "2024-1-1", "yesterday"])
def test_bad_date_only_is_a_decode_error(raw):
    with pytest.raises(DecodeError) as exc:
        decode_value({"starts": raw}, Window)
    assert exc.value.path == "starts"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2021-04-24T01:03:21Z", datetime(2021, 4, 24, 1, 3, 21, tzinfo=timezone.utc)),
        (
            "2021-04-24T01:03:21.250Z",
            datetime(2021, 4, 24, 1, 3, 21, 250000, tzinfo=timezone.utc),
        ),
        ("2021-04-24T03:03:21+02:00", datetime(2021, 4, 24, 1, 3, 21, tzinfo=timezone.utc)),
        ("2021-04-24T01:03:21", datetime(2021, 4, 24, 1, 3, 21, tzinfo=timezone.utc)),
        ("2021-04-24", datetime(2021, 4, 24, tzinfo=timezone.utc)),
        ("", None),
        (None, None),
    ],
)
def test_tolerant_datetime(raw, expected):
    assert decode_value({"seen_at": raw}, Window).seen_at == expected


def test_garbage_datetime_is_a_decode_error():
    with pytest.raises(DecodeError):
        decode_value({"seen_at": "not a time"}, Window)


def test_optional_url():
    assert decode_value({"html_url": ""}, Repository).html_url is None
    assert (
        decode_value({"html_url": "https://example.com/o/r"}, Repository).html_url
        == "https://example.com/o/r"
    )
    with pytest.raises(DecodeError):
        decode_value({"html_url": "not a url"}, Repository)


def test_decode_error_carries_nested_path():
    payload = [{"id": 1}, {"id": 2}, {"id": "three"}]
    with pytest.raises(DecodeError) as exc:
        decode_value(payload, List[Repository])
    assert exc.value.path == "2.id"


def test_structurally_incompatible_type_fails():
    with pytest.raises(DecodeError):
        decode_value({"profile": "not-an-object"}, Group)


def test_malformed_json_has_no_path():
    with pytest.raises(DecodeError) as exc:
        decode(b'{"id": ', Repository)
    assert exc.value.path is None
    assert "malformed JSON" in str(exc.value)


def test_aliases_and_nested_defaults():
    group = decode_value(
        {
            "id": "00g1",
            "type": "OKTA_GROUP",
            "profile": {"name": "Eng", "description": None},
            "lastUpdated": "2015-10-01T19:06:32.000Z",
        },
        Group,
    )
    assert group.profile.name == "Eng"
    assert group.profile.description == ""
    assert group.last_updated.year == 2015


def test_event_attribute_helper():
    event = decode_value({"id": "e1", "attributes": None, "occurred_on": "2024-01-02"}, Event)
    assert event.attributes == {}
    assert event.attribute("missing", "dflt") == "dflt"
    assert event.occurred_on == date(2024, 1, 2)


# --- Tagged responses ---


def _tagged(payload):
    return decode_tagged(payload, CONTENT_VARIANTS, array=List[DirectoryEntry])


def test_tagged_file():
    content = _tagged(
        {"type": "file", "name": "README.md", "encoding": "base64", "content": "aGk="}
    )
    assert isinstance(content, ContentFile)
    assert content.decoded_content == b"hi"


def test_tagged_symlink_and_submodule():
    assert isinstance(_tagged({"type": "symlink", "target": "a"}), ContentSymlink)
    sub = _tagged(
        {"type": "submodule", "submodule_git_url": "https://example.com/x.git"}
    )
    assert isinstance(sub, ContentSubmodule)


def test_tagged_directory_listing_from_array():
    listing = _tagged(
        json.dumps([{"type": "file", "name": "a"}, {"type": "dir", "name": "b"}])
    )
    assert [entry.name for entry in listing] == ["a", "b"]
    assert all(isinstance(entry, DirectoryEntry) for entry in listing)


def test_tagged_unknown_or_missing_discriminant():
    with pytest.raises(DecodeError) as exc:
        _tagged({"type": "portal"})
    assert exc.value.path == "type"

    with pytest.raises(DecodeError) as exc:
        _tagged({"name": "x"})
    assert exc.value.path == "type"


def test_tagged_array_without_array_variant():
    with pytest.raises(DecodeError):
        decode_tagged([], CONTENT_VARIANTS)

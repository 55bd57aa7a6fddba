"""
Tolerant decoding of loosely specified JSON into typed values.

Tolerance is declared per field rather than globally:
  - ``NullStr``/``NullInt``/... and ``null_default(...)`` collapse JSON null
    to the field's default (a missing key already takes the default)
  - ``TolerantEnum`` maps "" to ``NOOP`` and unknown strings to ``FALLTHROUGH``
  - ``DateOnly`` accepts exactly YYYY-MM-DD, "" or null
  - ``TolerantDateTime`` accepts the timestamp shapes services actually send
Anything else that does not fit the target type raises ``DecodeError``.
"""

from __future__ import annotations

import json
import re
from datetime import date, datetime, timezone
from enum import Enum
from functools import lru_cache
from typing import (
    Annotated,
    Any,
    Callable,
    Dict,
    List,
    Mapping,
    Optional,
    Type,
    TypeVar,
    Union,
)
from urllib.parse import urlsplit

from pydantic import BeforeValidator, TypeAdapter, ValidationError
from pydantic_core import core_schema

from .errors import DecodeError

T = TypeVar("T")

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DATETIME_FORMATS = (
    "%Y-%m-%dT%H:%M:%S.%fZ",
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
)


def null_default(default_factory: Callable[[], Any]) -> BeforeValidator:
    """Treat JSON null as the value produced by ``default_factory``."""

    def _coerce(value: Any) -> Any:
        return default_factory() if value is None else value

    return BeforeValidator(_coerce)


NullStr = Annotated[str, null_default(str)]
NullInt = Annotated[int, null_default(int)]
NullFloat = Annotated[float, null_default(float)]
NullBool = Annotated[bool, null_default(bool)]
NullList = Annotated[List[Any], null_default(list)]
NullDict = Annotated[Dict[str, Any], null_default(dict)]


class TolerantEnum(str, Enum):
    """
    String enum that never fails on values the server adds later.

    Subclasses must declare ``NOOP = ""`` and ``FALLTHROUGH = "*"``:
      - null or "" decodes to NOOP ("no value set")
      - any unknown string decodes to FALLTHROUGH ("unrecognized")
      - non-string values are rejected
    """

    @classmethod
    def _missing_(cls, value: object) -> Any:
        if isinstance(value, str):
            return cls.FALLTHROUGH  # type: ignore[attr-defined]
        return None

    @classmethod
    def coerce(cls, value: Any) -> "TolerantEnum":
        if value is None:
            return cls.NOOP  # type: ignore[attr-defined]
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(
                f"expected a string for {cls.__name__}, got {type(value).__name__}"
            )
        return cls(value)

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> Any:
        return core_schema.no_info_plain_validator_function(
            cls.coerce,
            serialization=core_schema.plain_serializer_function_ser_schema(
                lambda member: member.value
            ),
        )

    def is_noop(self) -> bool:
        return self is type(self).NOOP  # type: ignore[attr-defined]

    def is_unrecognized(self) -> bool:
        return self is type(self).FALLTHROUGH  # type: ignore[attr-defined]

    def __str__(self) -> str:
        return self.value


def _parse_date_only(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not _DATE_RE.match(value):
        raise ValueError(f"{value!r} is not a YYYY-MM-DD date")
    year, month, day = (int(part) for part in value.split("-"))
    try:
        return date(year, month, day)
    except ValueError as exc:
        raise ValueError(f"{value!r} is not a calendar date") from exc


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if not isinstance(value, str):
        raise ValueError(f"expected a timestamp string, got {type(value).__name__}")

    try:
        return _as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        pass
    for fmt in _DATETIME_FORMATS:
        try:
            return _as_utc(datetime.strptime(value, fmt))
        except ValueError:
            continue
    if _DATE_RE.match(value):
        day = _parse_date_only(value)
        return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
    raise ValueError(f"{value!r} is not a recognised timestamp")


def _parse_optional_url(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValueError(f"expected a URL string, got {type(value).__name__}")
    parts = urlsplit(value)
    if not parts.scheme or not parts.netloc:
        raise ValueError(f"{value!r} is not an absolute URL")
    return value


DateOnly = Annotated[Optional[date], BeforeValidator(_parse_date_only)]
TolerantDateTime = Annotated[Optional[datetime], BeforeValidator(_parse_datetime)]
OptionalUrl = Annotated[Optional[str], BeforeValidator(_parse_optional_url)]


@lru_cache(maxsize=256)
def _cached_adapter(target: Any) -> TypeAdapter:
    return TypeAdapter(target)


def _adapter(target: Any) -> TypeAdapter:
    try:
        return _cached_adapter(target)
    except TypeError:
        # unhashable target types cannot be cached
        return TypeAdapter(target)


def _error_path(exc: ValidationError) -> Optional[str]:
    errors = exc.errors()
    if not errors:
        return None
    loc = errors[0].get("loc") or ()
    return ".".join(str(part) for part in loc) or None


def _error_message(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    return str(errors[0].get("msg") or exc)


def loads(raw: Union[bytes, bytearray, str]) -> Any:
    """Parse JSON text, raising DecodeError on malformed input."""
    try:
        return json.loads(raw)
    except (ValueError, UnicodeDecodeError) as exc:
        snippet = raw[:200] if isinstance(raw, str) else bytes(raw[:200])
        raise DecodeError(f"malformed JSON ({exc}); body starts with {snippet!r}") from exc


def decode_value(payload: Any, target: Type[T]) -> T:
    """Validate already-parsed JSON against ``target``."""
    try:
        return _adapter(target).validate_python(payload)
    except ValidationError as exc:
        raise DecodeError(_error_message(exc), path=_error_path(exc)) from exc


def decode(raw: Union[bytes, bytearray, str], target: Type[T]) -> T:
    """Parse JSON text and validate it against ``target``."""
    return decode_value(loads(raw), target)


def decode_tagged(
    payload: Any,
    variants: Mapping[str, Any],
    *,
    discriminant: str = "type",
    array: Optional[Any] = None,
) -> Any:
    """
    Resolve a polymorphic response by its discriminant field.

    A top-level JSON array decodes as ``array`` when one is given; an object
    decodes as ``variants[payload[discriminant]]``.
    """
    if isinstance(payload, (bytes, bytearray, str)):
        payload = loads(payload)

    if isinstance(payload, list):
        if array is None:
            raise DecodeError("unexpected JSON array for tagged response")
        return decode_value(payload, array)

    if not isinstance(payload, dict):
        raise DecodeError(
            f"expected a JSON object for tagged response, got {type(payload).__name__}"
        )

    tag = payload.get(discriminant)
    if not isinstance(tag, str) or not tag:
        raise DecodeError("missing discriminant", path=discriminant)
    target = variants.get(tag)
    if target is None:
        raise DecodeError(f"unknown variant {tag!r}", path=discriminant)
    return decode_value(payload, target)


__all__ = [
    "null_default",
    "NullStr",
    "NullInt",
    "NullFloat",
    "NullBool",
    "NullList",
    "NullDict",
    "TolerantEnum",
    "DateOnly",
    "TolerantDateTime",
    "OptionalUrl",
    "loads",
    "decode",
    "decode_value",
    "decode_tagged",
]

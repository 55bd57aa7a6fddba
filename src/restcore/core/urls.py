from __future__ import annotations

import re
from datetime import date, datetime
from enum import Enum
from typing import Any, Iterable, Optional, Sequence, Tuple
from urllib.parse import quote

import httpx

from .decoding import TolerantEnum

QueryParams = Sequence[Tuple[str, Any]]

_PLACEHOLDER_RE = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


def encode_path(segment: Any) -> str:
    """
    Percent-encode one caller-supplied path segment.
    Nothing is left unescaped, so '/', '?', '#' or '%' in an identifier
    cannot change the path or start a query.
    """
    return quote(str(segment), safe="")


def expand_path(template: str, **params: Any) -> str:
    """
    Substitute ``{name}`` placeholders with individually encoded values.
    Example: expand_path('/repos/{owner}/{repo}', owner='a b', repo='x')
             -> '/repos/a%20b/x'
    """

    def _sub(match: "re.Match[str]") -> str:
        name = match.group(1)
        if name not in params:
            raise ValueError(f"Missing path parameter '{name}' for {template!r}")
        return encode_path(params[name])

    return _PLACEHOLDER_RE.sub(_sub, template)


def is_unset(value: Any) -> bool:
    """Sentinel check: None, "", 0, False and enum NOOP mean "not given"."""
    if value is None or value is False:
        return True
    if isinstance(value, TolerantEnum):
        return value.is_noop()
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0
    return False


def _query_value(value: Any) -> str:
    if value is True:
        return "true"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def query_pairs(params: Iterable[Tuple[str, Any]]) -> list[Tuple[str, str]]:
    return [(name, _query_value(value)) for name, value in params if not is_unset(value)]


def query_string(params: Iterable[Tuple[str, Any]]) -> str:
    """Encode ordered query parameters, dropping unset ones entirely."""
    return str(httpx.QueryParams(query_pairs(params)))


def build_url(
    base: str,
    path: str,
    params: QueryParams = (),
    *,
    base_override: Optional[str] = None,
) -> str:
    """
    Compose the final URL for one request.
    ``base_override`` replaces ``base`` for this call only.
    """
    host = (base_override or base).rstrip("/")
    if path and not path.startswith("/"):
        path = "/" + path
    url = f"{host}{path}"
    query = query_string(params)
    if query:
        url = f"{url}{'&' if '?' in path else '?'}{query}"
    return url


__all__ = [
    "QueryParams",
    "encode_path",
    "expand_path",
    "is_unset",
    "query_pairs",
    "query_string",
    "build_url",
]

"""
Aggregation of multi-page list responses.

The protocol is resolved once, from the first response:
  - LinkPaging: next page URL from a ``Link: <...>; rel="next"`` header
  - CursorPaging: opaque cursor from a response header, sent back as a
    query parameter on the next request
  - SinglePage: neither indicator present
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    List,
    Optional,
    Tuple,
    Type,
    TypeVar,
    Union,
)

import httpx

from .decoding import decode_value
from .errors import CyclicPaginationError, DecodeError, PageDecodeError
from .observability import log_event

if TYPE_CHECKING:
    from .client import Response

T = TypeVar("T")

DEFAULT_CURSOR_HEADER = "X-Next-Cursor"
DEFAULT_CURSOR_PARAM = "cursor"


@dataclass(frozen=True)
class LinkPaging:
    def next_url(self, current_url: str, response: "Response[Any]") -> Optional[str]:
        link = response.links.get("next") or {}
        href = link.get("url")
        if not href:
            return None
        # relative links resolve against the page that carried them
        return str(httpx.URL(current_url).join(href))


@dataclass(frozen=True)
class CursorPaging:
    header: str = DEFAULT_CURSOR_HEADER
    param: str = DEFAULT_CURSOR_PARAM

    def next_url(self, current_url: str, response: "Response[Any]") -> Optional[str]:
        cursor = (response.headers.get(self.header) or "").strip()
        if not cursor:
            return None
        return str(httpx.URL(current_url).copy_set_param(self.param, cursor))


@dataclass(frozen=True)
class SinglePage:
    def next_url(self, current_url: str, response: "Response[Any]") -> Optional[str]:
        return None


PagingProtocol = Union[LinkPaging, CursorPaging, SinglePage]
Fetch = Callable[[str], Awaitable["Response[Any]"]]


def detect_protocol(
    response: "Response[Any]",
    *,
    cursor_header: str = DEFAULT_CURSOR_HEADER,
    cursor_param: str = DEFAULT_CURSOR_PARAM,
) -> PagingProtocol:
    if "link" in response.headers:
        return LinkPaging()
    if cursor_header in response.headers:
        return CursorPaging(header=cursor_header, param=cursor_param)
    return SinglePage()


def _normalize(url: str) -> str:
    return str(httpx.URL(url))


def decode_page(response: "Response[Any]", item_type: Type[T], page_index: int) -> List[T]:
    if response.body is None:
        return []
    try:
        return decode_value(response.body, List[item_type])  # type: ignore[valid-type]
    except DecodeError as exc:
        raise PageDecodeError(page_index, exc) from exc


async def collect_all(
    fetch: Fetch,
    url: str,
    item_type: Type[T],
    *,
    cursor_header: str = DEFAULT_CURSOR_HEADER,
    cursor_param: str = DEFAULT_CURSOR_PARAM,
    logger: Optional[logging.Logger] = None,
) -> Tuple[List[T], "Response[Any]"]:
    """
    Fetch every page starting at ``url`` and concatenate their items.
    - Strictly sequential; page N+1 is requested after page N is decoded
    - Server order is preserved; nothing is deduplicated or re-sorted
    - Stops when no next indicator is present or a page is empty
    - Raises PageDecodeError (with 0-based page index) if any item fails
    - Raises CyclicPaginationError before re-requesting a visited URL
    Returns the items and the last page's response envelope.
    """
    current = url
    visited = {_normalize(url)}
    page_index = 0

    response = await fetch(current)
    protocol = detect_protocol(
        response, cursor_header=cursor_header, cursor_param=cursor_param
    )
    items: List[T] = []

    while True:
        page_items = decode_page(response, item_type, page_index)
        items.extend(page_items)
        log_event(
            "page_fetched",
            logger,
            page=page_index,
            count=len(page_items),
            paging=type(protocol).__name__,
        )
        if not page_items:
            break

        next_url = protocol.next_url(current, response)
        if not next_url:
            break
        key = _normalize(next_url)
        if key in visited:
            raise CyclicPaginationError(next_url, page_index)
        visited.add(key)

        current = next_url
        page_index += 1
        response = await fetch(current)

    return items, response


__all__ = [
    "DEFAULT_CURSOR_HEADER",
    "DEFAULT_CURSOR_PARAM",
    "LinkPaging",
    "CursorPaging",
    "SinglePage",
    "PagingProtocol",
    "detect_protocol",
    "decode_page",
    "collect_all",
]

from __future__ import annotations

from datetime import date
from typing import List, Optional

from restcore.core.client import RestClient
from restcore.models import Event, EventSeverity


async def list_all_events(
    client: RestClient,
    *,
    since: Optional[date] = None,
    severity: EventSeverity = EventSeverity.NOOP,
    limit: int = 0,
) -> List[Event]:
    """
    Drain the event feed.

    The feed pages with an opaque cursor returned in the client's cursor
    header (``X-Next-Cursor`` by default) and accepted back as ``cursor``.
    """
    url = client.url(
        "/v1/events",
        [("since", since), ("severity", severity), ("limit", limit)],
    )
    resp = await client.get_all_pages(url, Event)
    return resp.body

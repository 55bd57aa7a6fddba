from __future__ import annotations

from typing import List, Optional, Tuple

from restcore.core.client import RestClient
from restcore.core.urls import expand_path
from restcore.models import Group


async def list_groups(
    client: RestClient,
    *,
    q: str = "",
    search: str = "",
    expand: str = "",
    after: str = "",
    limit: int = 0,
) -> Tuple[Optional[str], List[Group]]:
    """
    One page of groups plus the URL of the next page, if any.
    ``after`` is the opaque cursor from a previous page's next link.
    """
    url = client.url(
        "/api/v1/groups",
        [
            ("after", after),
            ("expand", expand),
            ("limit", limit),
            ("q", q),
            ("search", search),
        ],
    )
    next_url, resp = await client.get_pages(url, Group)
    return next_url, resp.body


async def list_all_groups(
    client: RestClient,
    *,
    q: str = "",
    search: str = "",
    expand: str = "",
) -> List[Group]:
    url = client.url(
        "/api/v1/groups",
        [("expand", expand), ("q", q), ("search", search)],
    )
    resp = await client.get_all_pages(url, Group)
    return resp.body


async def get_group(client: RestClient, group_id: str) -> Group:
    url = client.url(expand_path("/api/v1/groups/{group_id}", group_id=group_id))
    resp = await client.get(url, model=Group)
    return resp.body

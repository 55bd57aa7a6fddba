from __future__ import annotations

from typing import List, Optional, Sequence

from restcore.core.auth import AuthConstraint
from restcore.core.client import Message, RestClient
from restcore.core.decoding import decode_tagged
from restcore.core.errors import ApiError, MissingCredentialError
from restcore.core.urls import encode_path, expand_path
from restcore.models import (
    CONTENT_VARIANTS,
    DirectoryEntry,
    InstallationToken,
    ReleaseAsset,
    RepoContent,
    Repository,
    RepositoryUpdate,
    TokenCheck,
    Topics,
)

MEDIA_TYPE_JSON = "application/vnd.github.v3+json"
PER_PAGE = 100


def preview_media_type(codename: str) -> str:
    """Accept header for a preview API, e.g. 'mercy' for repository topics."""
    return f"application/vnd.github.{codename}-preview+json"


def _content_path(path: str) -> str:
    # each segment is encoded on its own; the separators stay literal
    return "/".join(encode_path(part) for part in path.strip("/").split("/"))


async def get_repo(client: RestClient, owner: str, repo: str) -> Repository:
    url = client.url(expand_path("/repos/{owner}/{repo}", owner=owner, repo=repo))
    try:
        resp = await client.get(url, model=Repository, accept=MEDIA_TYPE_JSON)
    except ApiError as exc:
        if exc.status_code == 404:
            raise ApiError(
                status_code=404,
                method="GET",
                url=exc.url,
                message=f"Repository {owner}/{repo} not found or not visible.",
                raw_body=exc.raw_body,
                response_json=exc.response_json,
                headers=exc.headers,
            ) from exc
        raise
    return resp.body


async def list_all_repos_for_org(
    client: RestClient,
    org: str,
    *,
    type: str = "",
    sort: str = "",
    direction: str = "",
) -> List[Repository]:
    """
    Every repository of an organization, across all pages.

    Empty filter arguments are left out of the query so the service applies
    its own defaults.
    """
    url = client.url(
        expand_path("/orgs/{org}/repos", org=org),
        [
            ("type", type),
            ("sort", sort),
            ("direction", direction),
            ("per_page", PER_PAGE),
        ],
    )
    resp = await client.get_all_pages(url, Repository, accept=MEDIA_TYPE_JSON)
    return resp.body


async def get_content(
    client: RestClient, owner: str, repo: str, path: str, *, ref: str = ""
) -> RepoContent:
    """
    Fetch a path from a repository.

    The same endpoint answers with a file, a symlink, a submodule descriptor
    (objects tagged by "type") or a directory listing (a JSON array).
    """
    base = expand_path("/repos/{owner}/{repo}/contents", owner=owner, repo=repo)
    url = client.url(f"{base}/{_content_path(path)}", [("ref", ref)])
    resp = await client.get(url, accept=MEDIA_TYPE_JSON)
    return decode_tagged(
        resp.body,
        CONTENT_VARIANTS,
        discriminant="type",
        array=List[DirectoryEntry],
    )


async def upload_release_asset(
    client: RestClient,
    owner: str,
    repo: str,
    release_id: int,
    name: str,
    data: bytes,
    *,
    label: str = "",
    content_type: str = "application/octet-stream",
) -> ReleaseAsset:
    """Uploads go to the dedicated upload host, not the API host."""
    url = client.upload_url(
        expand_path(
            "/repos/{owner}/{repo}/releases/{release_id}/assets",
            owner=owner,
            repo=repo,
            release_id=release_id,
        ),
        [("name", name), ("label", label)],
    )
    resp = await client.post(
        url,
        Message.octet_stream(data, content_type=content_type),
        model=ReleaseAsset,
        accept=MEDIA_TYPE_JSON,
    )
    return resp.body


async def create_installation_access_token(
    client: RestClient,
    installation_id: int,
    *,
    repositories: Optional[Sequence[str]] = None,
) -> InstallationToken:
    url = client.url(
        expand_path(
            "/app/installations/{installation_id}/access_tokens",
            installation_id=installation_id,
        )
    )
    payload = {"repositories": list(repositories)} if repositories else {}
    resp = await client.post_jwt(
        url, Message.json(payload), model=InstallationToken, accept=MEDIA_TYPE_JSON
    )
    return resp.body


async def check_token(client: RestClient, access_token: str) -> TokenCheck:
    """Validate an OAuth token; authenticates as the OAuth app (client id/secret)."""
    client_id = client.credentials.client_id
    if not client_id:
        raise MissingCredentialError(
            AuthConstraint.BASIC_CLIENT_CREDENTIALS, "a client id and secret"
        )
    url = client.url(expand_path("/applications/{client_id}/token", client_id=client_id))
    resp = await client.post(
        url,
        Message.json({"access_token": access_token}),
        model=TokenCheck,
        auth=AuthConstraint.BASIC_CLIENT_CREDENTIALS,
        accept=MEDIA_TYPE_JSON,
    )
    return resp.body


async def update_repo(
    client: RestClient, owner: str, repo: str, update: RepositoryUpdate
) -> Repository:
    url = client.url(expand_path("/repos/{owner}/{repo}", owner=owner, repo=repo))
    resp = await client.patch(
        url, Message.json(update), model=Repository, accept=MEDIA_TYPE_JSON
    )
    return resp.body


async def replace_topics(
    client: RestClient, owner: str, repo: str, names: Sequence[str]
) -> Topics:
    url = client.url(expand_path("/repos/{owner}/{repo}/topics", owner=owner, repo=repo))
    resp = await client.put(
        url,
        Message.json({"names": list(names)}),
        model=Topics,
        accept=preview_media_type("mercy"),
    )
    return resp.body


async def delete_repo(client: RestClient, owner: str, repo: str) -> None:
    url = client.url(expand_path("/repos/{owner}/{repo}", owner=owner, repo=repo))
    await client.delete(url, accept=MEDIA_TYPE_JSON)

"""
OAuth2 authorization-code flow: consent URL, code exchange and refresh.

Token endpoint calls authenticate with the client id/secret (HTTP Basic) and
send the same pair in the form body, which is what Okta-style servers accept.
"""
from __future__ import annotations

import uuid
from dataclasses import replace
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict

from .auth import AuthConstraint, Credentials
from .client import Message, RestClient
from .decoding import NullInt, NullStr
from .errors import MissingCredentialError

AUTHORIZE_PATH = "/oauth2/v1/authorize"
TOKEN_PATH = "/oauth2/v1/token"


class AccessToken(BaseModel):
    model_config = ConfigDict(extra="ignore")

    token_type: NullStr = ""
    access_token: NullStr = ""
    expires_in: NullInt = 0
    refresh_token: NullStr = ""
    refresh_token_expires_in: NullInt = 0
    scope: NullStr = ""


def user_consent_url(
    client: RestClient,
    redirect_uri: str,
    scopes: Iterable[str] = (),
    *,
    state: Optional[str] = None,
    path: str = AUTHORIZE_PATH,
) -> str:
    """
    URL to send the user to for consent. ``state`` defaults to a random
    UUID; the scope parameter is left out when no scopes are given.
    """
    client_id = client.credentials.client_id
    if not client_id:
        raise MissingCredentialError(AuthConstraint.BASIC_CLIENT_CREDENTIALS, "a client id")
    return client.url(
        path,
        [
            ("client_id", client_id),
            ("response_type", "code"),
            ("redirect_uri", redirect_uri),
            ("state", state or str(uuid.uuid4())),
            ("scope", " ".join(scopes)),
        ],
    )


async def _token_request(client: RestClient, path: str, form: list) -> AccessToken:
    creds = client.credentials
    message = Message.form(
        form
        + [
            ("client_id", creds.client_id),
            ("client_secret", creds.client_secret),
        ]
    )
    resp = await client.post(
        client.url(path),
        message,
        model=AccessToken,
        auth=AuthConstraint.BASIC_CLIENT_CREDENTIALS,
        accept="application/json",
    )
    return resp.body if resp.body is not None else AccessToken()


async def get_access_token(
    client: RestClient,
    code: str,
    state: str = "",
    *,
    redirect_uri: str,
    path: str = TOKEN_PATH,
) -> AccessToken:
    """Exchange the code handed to the redirect URI for an access token."""
    return await _token_request(
        client,
        path,
        [
            ("grant_type", "authorization_code"),
            ("code", code),
            ("redirect_uri", redirect_uri),
            ("state", state),
        ],
    )


async def refresh_access_token(
    client: RestClient,
    *,
    redirect_uri: str = "",
    path: str = TOKEN_PATH,
) -> AccessToken:
    """Trade the client's refresh token for a new access token."""
    refresh_token = client.credentials.refresh_token
    if not refresh_token:
        raise MissingCredentialError(AuthConstraint.BEARER_TOKEN, "a refresh token")
    return await _token_request(
        client,
        path,
        [
            ("grant_type", "refresh_token"),
            ("refresh_token", refresh_token),
            ("redirect_uri", redirect_uri),
        ],
    )


def with_access_token(credentials: Credentials, token: AccessToken) -> Credentials:
    """
    Credentials carrying the new access token. The previous refresh token
    is kept when the server does not rotate it.
    """
    return replace(
        credentials,
        token=token.access_token or None,
        token_scheme=token.token_type or credentials.token_scheme,
        refresh_token=token.refresh_token or credentials.refresh_token,
    )


__all__ = [
    "AccessToken",
    "AUTHORIZE_PATH",
    "TOKEN_PATH",
    "get_access_token",
    "refresh_access_token",
    "user_consent_url",
    "with_access_token",
]

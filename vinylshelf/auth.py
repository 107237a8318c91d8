"""
Discogs credentials and authorized HTTP sessions.

Two kinds of credential are supported:
- a Personal Access Token, sent as ``Authorization: Discogs token=...``
- an OAuth 1.0a key set (consumer key/secret plus access token/secret),
  signed per request by requests-oauthlib

Obtaining OAuth access tokens (browser authorization) happens elsewhere; this
module only turns stored values into a session that signs requests.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Optional, Union

import requests
from requests_oauthlib import OAuth1Session

from vinylshelf.errors import ConfigError


@dataclass(frozen=True)
class TokenCredential:
    token: str
    kind: str = "token"

    def __repr__(self) -> str:
        return "TokenCredential(token=***)"


@dataclass(frozen=True)
class OAuthCredential:
    consumer_key: str
    consumer_secret: str
    access_token: str
    access_token_secret: str
    kind: str = "oauth"

    def __repr__(self) -> str:
        return "OAuthCredential(consumer_key=***, access_token=***)"


Credential = Union[TokenCredential, OAuthCredential]


def discogs_headers(token: str, user_agent: str) -> Dict[str, str]:
    """Build headers for Discogs API requests."""
    return {
        "Authorization": f"Discogs token={token}",
        "User-Agent": user_agent,
        "Accept": "application/json",
    }


def open_session(credential: Credential, user_agent: str) -> requests.Session:
    """Create a session that authorizes every request with the credential."""
    if isinstance(credential, OAuthCredential):
        session = OAuth1Session(
            credential.consumer_key,
            client_secret=credential.consumer_secret,
            resource_owner_key=credential.access_token,
            resource_owner_secret=credential.access_token_secret,
        )
        session.headers["User-Agent"] = user_agent
        session.headers["Accept"] = "application/json"
        return session
    session = requests.Session()
    session.headers.update(discogs_headers(credential.token, user_agent))
    return session


def _env(name: str) -> Optional[str]:
    value = os.getenv(name)
    return value.strip() if value and value.strip() else None


def credential_from_env(token: Optional[str] = None) -> Credential:
    """Resolve a credential.

    Priority order:
    1. An explicit token (e.g. from --token)
    2. DISCOGS_TOKEN
    3. DISCOGS_CONSUMER_KEY/SECRET with DISCOGS_OAUTH_TOKEN/TOKEN_SECRET

    Raises:
        ConfigError: if none of these is available
    """
    explicit = (token or "").strip() or _env("DISCOGS_TOKEN")
    if explicit:
        return TokenCredential(explicit)
    oauth_values = [
        _env("DISCOGS_CONSUMER_KEY"),
        _env("DISCOGS_CONSUMER_SECRET"),
        _env("DISCOGS_OAUTH_TOKEN"),
        _env("DISCOGS_OAUTH_TOKEN_SECRET"),
    ]
    if all(oauth_values):
        return OAuthCredential(*oauth_values)  # type: ignore[arg-type]
    raise ConfigError(
        "No credentials provided. Pass --token, set DISCOGS_TOKEN, or set the "
        "DISCOGS_CONSUMER_KEY/SECRET and DISCOGS_OAUTH_TOKEN/TOKEN_SECRET variables "
        "(optionally via .env)."
    )

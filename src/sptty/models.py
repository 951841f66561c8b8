"""Canonical Pydantic models shared across all sptty modules.

The models fall into three groups:

**Configuration models** -- loaded once at start-up and frozen:
    :class:`AuthorizationConfig` and :class:`Environment`.

**Token models** -- exchanged with the token endpoint and cached on disk:
    :class:`AccessTokenRecord`.

**Web API models** -- the few resource shapes the CLI commands read or send:
    :class:`Device`, :class:`Devices`, :class:`TransferPlaybackRequest`,
    :class:`StartResumePlaybackRequest`, :class:`PlaybackItem` and
    :class:`PlaybackState`. Response models ignore unknown keys so that
    additions to the Web API do not break decoding.

All models use Pydantic v2.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_AUTHORIZATION_ENDPOINT = "https://accounts.spotify.com/authorize"
DEFAULT_TOKEN_ENDPOINT = "https://accounts.spotify.com/api/token"
DEFAULT_API_ENDPOINT = "https://api.spotify.com"


# --- Configuration ---


class AuthorizationConfig(BaseModel):
    """OAuth2 client settings read from ``config.toml``.

    Example::

        AuthorizationConfig(
            client_id="abc",
            redirect_uri="http://127.0.0.1:4381/callback",
        )
    """

    model_config = ConfigDict(frozen=True)

    client_id: str = Field(description="Client id registered with the provider")
    redirect_uri: str = Field(
        description="Loopback URL the provider redirects to, with a fixed port"
    )
    authorization_endpoint: str = Field(default=DEFAULT_AUTHORIZATION_ENDPOINT)
    token_endpoint: str = Field(default=DEFAULT_TOKEN_ENDPOINT)


class Environment(BaseModel):
    """Everything a command needs to reach the provider."""

    model_config = ConfigDict(frozen=True)

    auth_config: AuthorizationConfig
    api_endpoint: str = DEFAULT_API_ENDPOINT


# --- Tokens ---


class AccessTokenRecord(BaseModel):
    """A token endpoint response, as cached on disk.

    No issue time or absolute expiry is tracked; ``expires_in`` is kept
    exactly as the provider returned it.
    """

    access_token: str
    token_type: str
    scope: str
    expires_in: int = Field(description="Lifetime in seconds, as returned by the provider")
    refresh_token: str


# --- Web API ---


class Device(BaseModel):
    """https://developer.spotify.com/documentation/web-api/reference/get-a-users-available-devices"""

    model_config = ConfigDict(extra="ignore")

    id: str
    is_active: bool
    is_private_session: bool = False
    is_restricted: bool = False
    name: str
    type: str = ""
    volume_percent: Optional[int] = None


class Devices(BaseModel):
    model_config = ConfigDict(extra="ignore")

    devices: list[Device] = Field(default_factory=list)


class TransferPlaybackRequest(BaseModel):
    device_ids: list[str]
    play: bool


class StartResumePlaybackRequest(BaseModel):
    context_uri: Optional[str] = None
    uris: Optional[list[str]] = None
    position_ms: Optional[int] = None


class PlaybackItem(BaseModel):
    """The track or episode currently loaded in the player."""

    model_config = ConfigDict(extra="ignore")

    name: str
    uri: str
    duration_ms: Optional[int] = None


class PlaybackState(BaseModel):
    """Slim view of the currently-playing context (``GET /v1/me/player``)."""

    model_config = ConfigDict(extra="ignore")

    is_playing: bool
    progress_ms: Optional[int] = None
    device: Optional[Device] = None
    item: Optional[PlaybackItem] = None

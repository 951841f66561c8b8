"""Token endpoint client.

Both grants POST a form-encoded body to ``token_endpoint`` and decode the
JSON answer into an :class:`~sptty.models.AccessTokenRecord`:

* :func:`exchange_code` -- ``grant_type=authorization_code`` with the PKCE
  ``code_verifier`` of the same attempt.
* :func:`refresh` -- ``grant_type=refresh_token``.

A non-2xx answer raises :class:`~sptty.exceptions.TokenExchangeError`
carrying the provider's body verbatim. Nothing is retried.
"""

from __future__ import annotations

from typing import Optional

import httpx
from pydantic import ValidationError

from sptty.exceptions import ConfigError, NetworkError, TokenExchangeError
from sptty.models import AccessTokenRecord, AuthorizationConfig
from sptty.output import debug

_TIMEOUT = 30.0


async def _post_form(
    config: AuthorizationConfig,
    data: dict[str, str],
    client: Optional[httpx.AsyncClient],
) -> AccessTokenRecord:
    """POST *data* to the token endpoint and decode the token record."""
    debug(f"POST {config.token_endpoint} grant_type={data['grant_type']}")
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=_TIMEOUT) as own_client:
                response = await own_client.post(
                    config.token_endpoint,
                    data=data,
                    headers={"Accept": "application/json"},
                )
        else:
            response = await client.post(
                config.token_endpoint,
                data=data,
                headers={"Accept": "application/json"},
            )
    except httpx.InvalidURL as exc:
        raise ConfigError(f"Invalid token_endpoint {config.token_endpoint!r}: {exc}") from exc
    except httpx.HTTPError as exc:
        raise NetworkError(f"Token request failed: {exc}") from exc

    if not response.is_success:
        raise TokenExchangeError(
            f"failed to get access token. {response.text}",
            body=response.text,
            status_code=response.status_code,
        )

    try:
        return AccessTokenRecord.model_validate_json(response.content)
    except ValidationError as exc:
        raise TokenExchangeError(
            f"Invalid token response: {exc}",
            body=response.text,
            status_code=response.status_code,
            decode_error=True,
        ) from exc


async def exchange_code(
    config: AuthorizationConfig,
    verifier: str,
    code: str,
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> AccessTokenRecord:
    """Redeem an authorization code for a token record.

    Args:
        config: Client settings.
        verifier: The PKCE verifier whose challenge was sent with the
            authorization request that produced *code*.
        code: The authorization code received on the redirect.
        client: Optional HTTP client to send the request with.

    Raises:
        TokenExchangeError: On a non-2xx answer or an undecodable body.
        NetworkError: On transport failures.
    """
    data = {
        "client_id": config.client_id,
        "grant_type": "authorization_code",
        "code": code,
        "redirect_uri": config.redirect_uri,
        "code_verifier": verifier,
    }
    return await _post_form(config, data, client)


async def refresh(
    config: AuthorizationConfig,
    token: AccessTokenRecord,
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> AccessTokenRecord:
    """Trade *token*'s refresh token for a new token record."""
    data = {
        "grant_type": "refresh_token",
        "refresh_token": token.refresh_token,
        "client_id": config.client_id,
    }
    return await _post_form(config, data, client)

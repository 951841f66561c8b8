"""Tests for authorization URL construction."""

from __future__ import annotations

from urllib.parse import parse_qs, parse_qsl, urlsplit

import pytest

from sptty.auth.authorize import SCOPE, build_authorization_url
from sptty.exceptions import ConfigError
from sptty.models import AuthorizationConfig


def _make_config(**kwargs: str) -> AuthorizationConfig:
    defaults = {
        "client_id": "abc",
        "redirect_uri": "http://127.0.0.1:4381/callback",
        "authorization_endpoint": "https://auth.test/authorize",
    }
    defaults.update(kwargs)
    return AuthorizationConfig(**defaults)


class TestBuildAuthorizationUrl:
    def test_base_is_authorization_endpoint(self) -> None:
        url, _ = build_authorization_url(_make_config(), "challenge")
        parts = urlsplit(url)
        assert (parts.scheme, parts.netloc, parts.path) == ("https", "auth.test", "/authorize")

    def test_query_parameters(self) -> None:
        url, state = build_authorization_url(_make_config(), "the-challenge")
        query = parse_qs(urlsplit(url).query)
        assert query == {
            "client_id": ["abc"],
            "response_type": ["code"],
            "redirect_uri": ["http://127.0.0.1:4381/callback"],
            "code_challenge_method": ["S256"],
            "code_challenge": ["the-challenge"],
            "scope": [SCOPE],
            "state": [state],
        }

    def test_parameter_order(self) -> None:
        url, _ = build_authorization_url(_make_config(), "c")
        keys = [key for key, _ in parse_qsl(urlsplit(url).query)]
        assert keys == [
            "client_id",
            "response_type",
            "redirect_uri",
            "code_challenge_method",
            "code_challenge",
            "scope",
            "state",
        ]

    def test_redirect_uri_is_percent_encoded(self) -> None:
        url, _ = build_authorization_url(_make_config(), "c")
        assert "redirect_uri=http%3A%2F%2F127.0.0.1%3A4381%2Fcallback" in url

    def test_state_differs_between_attempts(self) -> None:
        config = _make_config()
        _, first = build_authorization_url(config, "c")
        _, second = build_authorization_url(config, "c")
        assert first != second

    def test_existing_query_is_kept(self) -> None:
        config = _make_config(authorization_endpoint="https://auth.test/authorize?show_dialog=true")
        url, _ = build_authorization_url(config, "c")
        pairs = parse_qsl(urlsplit(url).query)
        assert pairs[0] == ("show_dialog", "true")
        assert ("client_id", "abc") in pairs

    @pytest.mark.parametrize("endpoint", ["not a url", "/authorize", ""])
    def test_invalid_endpoint_raises(self, endpoint: str) -> None:
        with pytest.raises(ConfigError, match="authorization_endpoint"):
            build_authorization_url(_make_config(authorization_endpoint=endpoint), "c")

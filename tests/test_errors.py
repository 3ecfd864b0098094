"""Tests for token_generator.errors — messages and operator hints."""

from __future__ import annotations

from pathlib import Path

import pytest

from token_generator.errors import (
    InstallationAuthError,
    InstallationNotFoundError,
    InvalidConfigurationError,
    KeyFileNotFoundError,
    KeyFileUnreadableError,
    MissingConfigurationError,
    SigningError,
    TokenIssuerError,
    TokenRequestError,
)


@pytest.mark.parametrize(
    "exc",
    [
        MissingConfigurationError("APP_ID"),
        InvalidConfigurationError("GITHUB_API_TIMEOUT", "x", "not a number"),
        KeyFileNotFoundError(Path("/app/private-key.pem")),
        KeyFileUnreadableError(Path("/app/private-key.pem"), "permission denied"),
        SigningError("bad key"),
        InstallationAuthError("401"),
        InstallationNotFoundError("404"),
        TokenRequestError("boom", status_code=500),
    ],
)
def test_every_kind_is_a_token_issuer_error(exc: TokenIssuerError) -> None:
    assert isinstance(exc, TokenIssuerError)
    assert str(exc)


def test_hints_distinguish_failure_kinds() -> None:
    assert InstallationAuthError("x").hint == (
        "Authentication failed. Check your APP_ID and private key."
    )
    assert InstallationNotFoundError("x").hint == (
        "Installation not found. Check your INSTALLATION_ID."
    )
    assert "Private key file not found" in KeyFileNotFoundError("/k.pem").hint
    assert "sign" in SigningError("x").hint
    assert TokenRequestError("x").hint is None
    assert MissingConfigurationError("APP_ID").hint is None


def test_hint_override_is_per_instance() -> None:
    exc = TokenRequestError("x")
    custom = SigningError("x", hint="custom")
    assert custom.hint == "custom"
    assert SigningError("y").hint != "custom"
    assert exc.hint is None


def test_unreadable_key_message_includes_reason() -> None:
    exc = KeyFileUnreadableError("/k.pem", "permission denied")
    assert str(exc) == "Private key file at /k.pem could not be read: permission denied"
    assert exc.path == "/k.pem"
    assert isinstance(exc, KeyFileNotFoundError)


def test_request_error_status_code_defaults_to_none() -> None:
    assert TokenRequestError("x").status_code is None
    assert TokenRequestError("x", status_code=502).status_code == 502

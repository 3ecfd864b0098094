"""
Issuer configuration — read once from the environment at startup.

Nothing below the CLI entry point touches ``os.environ``; the resulting
``IssuerConfig`` is passed explicitly to the issuer.

Configuration:
    APP_ID:             GitHub App ID, used as the JWT issuer (required)
    INSTALLATION_ID:    Installation to exchange the JWT for (required)
    PRIVATE_KEY_PATH:   PEM private key path (default: /app/private-key.pem)
    GITHUB_API_URL:     API base URL (default: https://api.github.com)
    GITHUB_API_TIMEOUT: Seconds before the token request is abandoned (default: 15)
"""

from __future__ import annotations

import math
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from token_generator.errors import (
    InvalidConfigurationError,
    KeyFileNotFoundError,
    MissingConfigurationError,
)

DEFAULT_PRIVATE_KEY_PATH = "/app/private-key.pem"
DEFAULT_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT_SECONDS = 15.0


def _get_env(environ: Mapping[str, str], key: str, default: str = "") -> str:
    """Read a variable from ``environ``, treating blank values as unset."""
    return environ.get(key, "").strip() or default


@dataclass(frozen=True)
class IssuerConfig:
    """Everything the issuer needs for a single token exchange.

    Attributes:
        app_id:           GitHub App ID.
        installation_id:  GitHub App installation ID.
        private_key_path: Path to the PEM-encoded App private key.
        api_url:          GitHub REST API base URL, without trailing slash.
        timeout_seconds:  Upper bound on the token request.
        repositories:     Repository names to restrict the token to.
                          Empty means full installation scope.
    """

    app_id: str
    installation_id: str
    private_key_path: Path = Path(DEFAULT_PRIVATE_KEY_PATH)
    api_url: str = DEFAULT_API_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    repositories: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.app_id:
            raise MissingConfigurationError("APP_ID")
        if not self.installation_id:
            raise MissingConfigurationError("INSTALLATION_ID")
        if not (math.isfinite(self.timeout_seconds) and self.timeout_seconds > 0):
            raise InvalidConfigurationError(
                "GITHUB_API_TIMEOUT",
                str(self.timeout_seconds),
                "must be a positive finite number",
            )
        object.__setattr__(self, "api_url", self.api_url.rstrip("/"))

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        repositories: tuple[str, ...] = (),
    ) -> IssuerConfig:
        """Build the configuration from ``environ`` (defaults to ``os.environ``).

        Raises:
            MissingConfigurationError: APP_ID or INSTALLATION_ID is unset.
            InvalidConfigurationError: GITHUB_API_TIMEOUT is not a positive finite number.
        """
        env = os.environ if environ is None else environ
        app_id = _get_env(env, "APP_ID")
        installation_id = _get_env(env, "INSTALLATION_ID")
        # Identifiers are reported before any optional value.
        for name, value in (("APP_ID", app_id), ("INSTALLATION_ID", installation_id)):
            if not value:
                raise MissingConfigurationError(name)

        raw_timeout = _get_env(env, "GITHUB_API_TIMEOUT", str(DEFAULT_TIMEOUT_SECONDS))
        try:
            timeout = float(raw_timeout)
        except ValueError:
            raise InvalidConfigurationError(
                "GITHUB_API_TIMEOUT", raw_timeout, "not a number"
            ) from None

        return cls(
            app_id=app_id,
            installation_id=installation_id,
            private_key_path=Path(
                _get_env(env, "PRIVATE_KEY_PATH", DEFAULT_PRIVATE_KEY_PATH)
            ),
            api_url=_get_env(env, "GITHUB_API_URL", DEFAULT_API_URL),
            timeout_seconds=timeout,
            repositories=repositories,
        )

    def validate(self) -> None:
        """Check local preconditions that the constructor cannot.

        Raises:
            KeyFileNotFoundError: ``private_key_path`` is not an existing file.
        """
        if not self.private_key_path.is_file():
            raise KeyFileNotFoundError(self.private_key_path)

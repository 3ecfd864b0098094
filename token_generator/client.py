"""
GitHub REST client for the installation token exchange.

``InstallationTokenClient`` is the only capability the issuer depends on, so
tests and alternative backends can stand in for GitHub without patching.
``GitHubAppClient`` implements it over ``httpx.AsyncClient``.

Usage::

    async with GitHubAppClient("https://api.github.com", timeout=15) as client:
        token = await client.create_installation_token(app_jwt, "12345")
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from types import TracebackType
from typing import Any, Protocol, runtime_checkable
from urllib.parse import quote

import httpx
import structlog

from token_generator import __version__
from token_generator.errors import (
    InstallationAuthError,
    InstallationNotFoundError,
    TokenRequestError,
)

logger = structlog.get_logger()

GITHUB_API_VERSION = "2022-11-28"
USER_AGENT = f"token-generator/{__version__}"


@dataclass(frozen=True)
class InstallationToken:
    """An installation access token as returned by GitHub.

    The caller owns the token once printed; nothing here caches it.
    """

    token: str
    expires_at: str | None = None

    def __repr__(self) -> str:
        return f"InstallationToken(token='***', expires_at={self.expires_at!r})"


@runtime_checkable
class InstallationTokenClient(Protocol):
    """Interface for exchanging an App JWT for an installation token."""

    async def create_installation_token(
        self,
        app_jwt: str,
        installation_id: str,
        repositories: Sequence[str] = (),
    ) -> InstallationToken:
        """Exchange ``app_jwt`` for a token scoped to ``installation_id``.

        An empty ``repositories`` requests the full installation scope.
        """
        ...


def _error_message(response: httpx.Response) -> str:
    """Extract GitHub's ``message`` field, falling back to the reason phrase."""
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason_phrase


class GitHubAppClient:
    """httpx-backed ``InstallationTokenClient``.

    Args:
        base_url:  GitHub REST API base URL.
        timeout:   Seconds before the request is abandoned.
        transport: Optional httpx transport (``httpx.MockTransport`` in tests).
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": GITHUB_API_VERSION,
                "User-Agent": USER_AGENT,
            },
        )

    async def __aenter__(self) -> GitHubAppClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def create_installation_token(
        self,
        app_jwt: str,
        installation_id: str,
        repositories: Sequence[str] = (),
    ) -> InstallationToken:
        """Call POST /app/installations/{id}/access_tokens.

        Raises:
            InstallationAuthError:     GitHub answered 401.
            InstallationNotFoundError: GitHub answered 404.
            TokenRequestError:         Any other status, transport failure,
                                       timeout, or unusable response body.
        """
        # Encoded as a single segment so the JWT only reaches this endpoint.
        path = f"/app/installations/{quote(installation_id, safe='')}/access_tokens"
        kwargs: dict[str, Any] = {"headers": {"Authorization": f"Bearer {app_jwt}"}}
        if repositories:
            kwargs["json"] = {"repositories": list(repositories)}

        try:
            response = await self._client.post(path, **kwargs)
        except httpx.TimeoutException as exc:
            raise TokenRequestError(
                f"Request to {self.base_url}{path} timed out after {self.timeout:g}s"
            ) from exc
        except httpx.RequestError as exc:
            raise TokenRequestError(f"Request to {self.base_url}{path} failed: {exc}") from exc

        if response.status_code == 401:
            raise InstallationAuthError(f"GitHub rejected the App JWT: {_error_message(response)}")
        if response.status_code == 404:
            raise InstallationNotFoundError(
                f"Installation {installation_id} not found: {_error_message(response)}"
            )
        if response.is_error:
            raise TokenRequestError(
                f"GitHub returned HTTP {response.status_code}: {_error_message(response)}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise TokenRequestError(
                "GitHub response was not valid JSON", status_code=response.status_code
            ) from exc
        token = data.get("token") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            raise TokenRequestError(
                "GitHub response did not contain an installation token",
                status_code=response.status_code,
            )

        expires_at = data.get("expires_at")
        logger.info(
            "token_generator.installation_token_created",
            installation_id=installation_id,
            expires_at=expires_at,
            repositories=len(repositories) or "all",
        )
        return InstallationToken(token=token, expires_at=expires_at)

"""
Token Issuer — the linear sign → exchange flow after validation.

The issuer never reads the environment and never constructs its own HTTP
client; both arrive as constructor arguments. The caller validates the
configuration (the validating stage) before calling ``issue()``. Stages
only move forward: validating → signing → exchanging → done, or to failed
from any stage.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

import structlog

from token_generator.assertion import build_app_jwt
from token_generator.client import InstallationToken, InstallationTokenClient
from token_generator.config import IssuerConfig
from token_generator.errors import (
    KeyFileNotFoundError,
    KeyFileUnreadableError,
    TokenIssuerError,
)

logger = structlog.get_logger()


class IssuerStage(StrEnum):
    """Lifecycle stages of a single issuance."""

    VALIDATING = "validating"
    SIGNING = "signing"
    EXCHANGING = "exchanging"
    DONE = "done"
    FAILED = "failed"


@dataclass
class TokenIssuer:
    """Exchanges App credentials for one installation access token.

    Args:
        config: Issuer configuration that has passed ``validate()``.
        client: Anything implementing ``InstallationTokenClient``.
        clock:  Wall-clock source in Unix seconds (injectable for tests).
    """

    config: IssuerConfig
    client: InstallationTokenClient
    clock: Callable[[], float] = time.time
    stage: IssuerStage = IssuerStage.VALIDATING

    def load_private_key(self) -> str:
        """Read the PEM private key; the file handle is closed on every path."""
        path = self.config.private_key_path
        try:
            with path.open(encoding="utf-8") as f:
                return f.read()
        except FileNotFoundError:
            raise KeyFileNotFoundError(path) from None
        except (OSError, UnicodeDecodeError) as exc:
            raise KeyFileUnreadableError(path, str(exc)) from exc

    async def issue(self) -> InstallationToken:
        """Sign and exchange once, returning the installation token.

        ``config`` must already have passed ``IssuerConfig.validate()``. A key
        file that vanished since then surfaces as ``KeyFileNotFoundError``.

        Raises:
            TokenIssuerError: Any signing or exchange failure.
                              ``stage`` is left at ``FAILED``.
        """
        try:
            self._advance(IssuerStage.SIGNING)
            private_key = self.load_private_key()
            app_jwt = build_app_jwt(self.config.app_id, private_key, now=int(self.clock()))

            self._advance(IssuerStage.EXCHANGING)
            token = await self.client.create_installation_token(
                app_jwt,
                self.config.installation_id,
                self.config.repositories,
            )
        except TokenIssuerError:
            self.stage = IssuerStage.FAILED
            raise

        self._advance(IssuerStage.DONE)
        logger.info(
            "token_generator.issue_complete",
            installation_id=self.config.installation_id,
            expires_at=token.expires_at,
        )
        return token

    def _advance(self, stage: IssuerStage) -> None:
        logger.debug("token_generator.stage", previous=str(self.stage), stage=str(stage))
        self.stage = stage

"""Error taxonomy for installation token issuance.

Every failure is terminal for the invocation. The CLI reports each kind the
same way (diagnostic on stderr, exit 1); the ``hint`` attribute carries the
operator-facing guidance that differs per kind.
"""

from __future__ import annotations


class TokenIssuerError(Exception):
    """Base class for every failure the issuer reports to the operator."""

    hint: str | None = None

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        if hint is not None:
            self.hint = hint


class MissingConfigurationError(TokenIssuerError):
    """A required environment variable is unset or blank."""

    def __init__(self, variable: str) -> None:
        self.variable = variable
        super().__init__(f"{variable} environment variable is required")


class InvalidConfigurationError(TokenIssuerError):
    """An optional environment variable holds a value that cannot be used."""

    def __init__(self, variable: str, value: str, reason: str) -> None:
        self.variable = variable
        self.value = value
        super().__init__(f"{variable}={value!r} is invalid: {reason}")


class KeyFileNotFoundError(TokenIssuerError):
    """The private key file does not exist at the configured path."""

    hint = "Private key file not found. Check PRIVATE_KEY_PATH."

    def __init__(self, path: object, message: str | None = None) -> None:
        self.path = path
        super().__init__(message or f"Private key file not found at {path}")


class KeyFileUnreadableError(KeyFileNotFoundError):
    """The private key file exists but could not be read."""

    hint = "Private key file could not be read. Check its permissions."

    def __init__(self, path: object, reason: str) -> None:
        super().__init__(path, f"Private key file at {path} could not be read: {reason}")


class SigningError(TokenIssuerError):
    """The App JWT could not be signed with the configured private key."""

    hint = "Could not sign the App JWT. Check that the private key is a PEM-encoded RSA key."


class InstallationAuthError(TokenIssuerError):
    """GitHub rejected the App JWT (HTTP 401)."""

    hint = "Authentication failed. Check your APP_ID and private key."


class InstallationNotFoundError(TokenIssuerError):
    """GitHub does not know the requested installation (HTTP 404)."""

    hint = "Installation not found. Check your INSTALLATION_ID."


class TokenRequestError(TokenIssuerError):
    """Any other failure while requesting the installation token.

    Args:
        message:     Human-readable description of the failure.
        status_code: HTTP status returned by GitHub, or None for transport
                     errors (connection refused, timeout, bad response body).
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)

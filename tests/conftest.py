"""
Shared pytest fixtures for token generator tests.

Provides:
- A throwaway RSA key pair (generated once per session) and a key file
- A complete issuer environment pointing at that key file
- A recording handler that answers like GitHub's token endpoint
- structlog reset between tests so captured streams never leak
"""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest
import structlog
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from tests.github_mocks import (
    TEST_APP_ID,
    TEST_EXPIRES_AT,
    TEST_INSTALLATION_ID,
    TEST_TOKEN,
    RecordingHandler,
)


def _generate_rsa_key_pair() -> tuple[str, str]:
    """Generate a fresh RSA key pair in PEM format for testing."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return private_pem.decode("utf-8"), public_pem.decode("utf-8")


@pytest.fixture(scope="session")
def rsa_key_pair() -> tuple[str, str]:
    """(private_pem, public_pem) shared by the whole session."""
    return _generate_rsa_key_pair()


@pytest.fixture()
def private_key_pem(rsa_key_pair: tuple[str, str]) -> str:
    return rsa_key_pair[0]


@pytest.fixture()
def public_key_pem(rsa_key_pair: tuple[str, str]) -> str:
    return rsa_key_pair[1]


@pytest.fixture()
def key_file(tmp_path: Path, private_key_pem: str) -> Path:
    """Private key written to a temporary PEM file."""
    path = tmp_path / "private-key.pem"
    path.write_text(private_key_pem, encoding="utf-8")
    return path


@pytest.fixture()
def issuer_env(key_file: Path) -> dict[str, str]:
    """A complete, valid issuer environment. Mutate freely per test."""
    return {
        "APP_ID": TEST_APP_ID,
        "INSTALLATION_ID": TEST_INSTALLATION_ID,
        "PRIVATE_KEY_PATH": str(key_file),
    }


@pytest.fixture()
def token_handler() -> RecordingHandler:
    """Handler answering 201 with a fresh installation token."""
    return RecordingHandler(201, {"token": TEST_TOKEN, "expires_at": TEST_EXPIRES_AT})


@pytest.fixture(autouse=True)
def _reset_structlog() -> Generator[None, None, None]:
    yield
    structlog.reset_defaults()

"""Issue GitHub App installation access tokens for shell consumption."""

__version__ = "0.1.0"

"""Repository layer for durable credential storage."""

from .credential import CredentialStore, MemoryCredentialStore, PostgresCredentialStore

__all__ = [
    "CredentialStore",
    "MemoryCredentialStore",
    "PostgresCredentialStore",
]

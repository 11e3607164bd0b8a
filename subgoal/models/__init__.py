"""Data models shared by stores, services and routers."""

from .credential import CredentialRecord, GoalRecord, normalize_channel

__all__ = [
    "CredentialRecord",
    "GoalRecord",
    "normalize_channel",
]

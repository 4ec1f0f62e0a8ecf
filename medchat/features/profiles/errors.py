from __future__ import annotations


class ProfileDomainError(Exception):
    """Base exception for profile storage."""


class ProfileNotFoundError(ProfileDomainError):
    pass

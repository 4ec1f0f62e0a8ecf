from .errors import ProfileDomainError, ProfileNotFoundError
from .repo import get_profile, upsert_profile
from .types import ProfilePatch, ProfileResponse

__all__ = [
    "ProfileDomainError",
    "ProfileNotFoundError",
    "ProfilePatch",
    "ProfileResponse",
    "get_profile",
    "upsert_profile",
]

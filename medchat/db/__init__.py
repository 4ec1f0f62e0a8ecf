from .base import Base
from .models import Chat, Message, Profile

__all__ = [
    "Base",
    "Chat",
    "Message",
    "Profile",
]

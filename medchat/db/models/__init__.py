from .chat import Chat, Message
from .profiles import Profile

__all__ = [
    "Chat",
    "Message",
    "Profile",
]

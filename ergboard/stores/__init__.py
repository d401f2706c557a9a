from .base import MemberDirectory, TokenStore
from .memory import InMemoryMemberDirectory, InMemoryTokenStore

__all__ = [
    "MemberDirectory",
    "TokenStore",
    "InMemoryMemberDirectory",
    "InMemoryTokenStore",
]

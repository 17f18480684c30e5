"""HTTP access to the interview backend."""

from .client import RemoteGateway
from .session_store import AuthSession, User

__all__ = ["RemoteGateway", "AuthSession", "User"]

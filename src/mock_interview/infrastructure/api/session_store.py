"""
Authenticated session context: bearer token plus the signed-in user.
"""
import os
import json
import logging
from dataclasses import dataclass, asdict, fields
from typing import Optional

logger = logging.getLogger("session_store")


@dataclass
class User:
    """The signed-in user as returned by the auth endpoints."""
    id: str
    email: str
    name: Optional[str] = None


class AuthSession:
    """
    Holds the bearer token and user for authenticated calls.

    The session is passed to whatever needs it instead of living in ambient
    global storage. It persists to a JSON file only when save() is called.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = path
        self.token: Optional[str] = None
        self.user: Optional[User] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @property
    def user_id(self) -> Optional[str]:
        return self.user.id if self.user else None

    def set(self, token: str, user: User) -> None:
        """Replace the in-memory token and user."""
        self.token = token
        self.user = user

    def load(self) -> bool:
        """
        Load token and user from disk.

        Returns:
            True if a stored session was found and loaded
        """
        if not self.path or not os.path.exists(self.path):
            return False
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read session file {self.path}: {e}")
            return False

        if not isinstance(data, dict):
            logger.warning(f"Ignoring session file {self.path}: expected an object")
            return False
        token = data.get("token")
        user_data = data.get("user")
        if not token or not isinstance(token, str):
            return False
        user = None
        if user_data:
            if not isinstance(user_data, dict) or "id" not in user_data or "email" not in user_data:
                logger.warning(f"Ignoring session file {self.path}: malformed user record")
                return False
            known = {f.name for f in fields(User)}
            user = User(**{k: v for k, v in user_data.items() if k in known})
        self.token = token
        self.user = user
        logger.info(f"Loaded session for {self.user.email if self.user else 'unknown user'}")
        return True

    def save(self) -> None:
        """Write token and user to disk."""
        if not self.path:
            return
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        data = {
            "token": self.token,
            "user": asdict(self.user) if self.user else None,
        }
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)
        logger.debug(f"Saved session to {self.path}")

    def clear(self) -> None:
        """Forget the token and user, in memory and on disk."""
        self.token = None
        self.user = None
        if self.path and os.path.exists(self.path):
            os.remove(self.path)
            logger.info("Cleared stored session")

from dashboard.models.oauth_state import OAuthState
from dashboard.models.session import Session
from dashboard.models.user import User

__all__ = [
    "User",
    "Session",
    "OAuthState",
]

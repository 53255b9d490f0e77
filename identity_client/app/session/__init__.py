"""
User sessions: construction from token bundles and expiry checks.
"""

from .builder import SessionBuilder, is_token_expired, subject_from_id_token
from .models import IdentityUser, Session, UserProfile

__all__ = [
    "IdentityUser",
    "Session",
    "SessionBuilder",
    "UserProfile",
    "is_token_expired",
    "subject_from_id_token",
]

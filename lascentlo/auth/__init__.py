"""
Accounts — users, sessions and account tokens.
"""

from lascentlo.auth._types import Role, User, Session
from lascentlo.auth._secrets import Passwords, SessionTokens, one_time_token, digest
from lascentlo.auth._service import Accounts, Registration, ProfileChanges, to_user

__all__ = (
    "Role",
    "User",
    "Session",
    "Passwords",
    "SessionTokens",
    "one_time_token",
    "digest",
    "Accounts",
    "Registration",
    "ProfileChanges",
    "to_user",
)

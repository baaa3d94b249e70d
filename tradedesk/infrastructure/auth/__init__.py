"""
Authentication: RS256 tokens tracked in Redis, bcrypt passwords and
server-side sessions.
"""

from .jwt_service import (
    InvalidTokenException,
    JWTService,
    TokenExpiredException,
    TokenReuseException,
    TokenRevokedException,
)
from .middleware import JWTBearer, RequestIDMiddleware, RequireRole, SecurityHeadersMiddleware
from .passwords import PasswordHasher, PasswordValidator
from .user_service import (
    AccountLockedError,
    AuthenticationError,
    AuthenticationResult,
    EmailAlreadyRegisteredError,
    RegistrationResult,
    UserService,
)

__all__ = [
    "AccountLockedError",
    "AuthenticationError",
    "AuthenticationResult",
    "EmailAlreadyRegisteredError",
    "InvalidTokenException",
    "JWTBearer",
    "JWTService",
    "PasswordHasher",
    "PasswordValidator",
    "RegistrationResult",
    "RequestIDMiddleware",
    "RequireRole",
    "SecurityHeadersMiddleware",
    "TokenExpiredException",
    "TokenReuseException",
    "TokenRevokedException",
    "UserService",
]

"""
Security utilities for authentication.
"""

from .password import generate_temp_password
from .tokens import TokenPayload, TokenService

__all__ = [
    "TokenService",
    "TokenPayload",
    "generate_temp_password",
]

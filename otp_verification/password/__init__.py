"""
Password Hashing
================
Argon2id password verifier with bcrypt read compatibility.
"""

from .hasher import build_hasher, get_cached_hasher
from .verifier import PasswordVerifier

__all__ = [
    "build_hasher",
    "get_cached_hasher",
    "PasswordVerifier",
]

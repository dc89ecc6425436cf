"""
Password Hasher
===============
Argon2id password hasher configuration.
"""

from functools import lru_cache

from argon2 import PasswordHasher, Type


def build_hasher(
    time_cost: int = 3,
    memory_cost: int = 65536,
    parallelism: int = 4,
) -> PasswordHasher:
    """
    Build an Argon2id hasher.

    Defaults take roughly 300ms per hash on a typical server.

    Args:
        time_cost: Number of iterations
        memory_cost: Memory in KiB
        parallelism: Parallel lanes
    """
    return PasswordHasher(
        time_cost=time_cost,
        memory_cost=memory_cost,
        parallelism=parallelism,
        hash_len=32,
        salt_len=16,
        type=Type.ID,
    )


@lru_cache(maxsize=1)
def get_cached_hasher() -> PasswordHasher:
    """Get the shared hasher with production settings."""
    return build_hasher()

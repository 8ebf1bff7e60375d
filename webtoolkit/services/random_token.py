"""
Random token generation for file names and other unguessable identifiers.
"""

import secrets

# 64 symbols: lowercase, uppercase, digits, "_" and "+"
RANDOM_STRING_SOURCE = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_+"


def random_string(n: int) -> str:
    """
    Return n characters drawn uniformly from RANDOM_STRING_SOURCE.

    Uses the secrets CSPRNG; secrets.choice samples without modulo bias.
    """
    if n < 0:
        raise ValueError(f"length must be non-negative, got {n}")
    return "".join(secrets.choice(RANDOM_STRING_SOURCE) for _ in range(n))

"""Password hashing utilities.

Uses bcrypt for password hashing. bcrypt salts automatically and its
checkpw comparison is constant-time. The work factor defaults to 12
(~100ms per hash on modern hardware); tests lower it through settings.
"""

import bcrypt

DEFAULT_ROUNDS = 12


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Hash a password with bcrypt.

    bcrypt produces hashes starting with "$2b$" and only looks at the
    first 72 bytes of the password, so longer input is truncated here.
    """
    pw_bytes = password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its bcrypt hash. Malformed hashes never match."""
    try:
        pw_bytes = password.encode("utf-8")[:72]
        hash_bytes = password_hash.encode("utf-8")
        return bcrypt.checkpw(pw_bytes, hash_bytes)
    except (ValueError, TypeError):
        return False

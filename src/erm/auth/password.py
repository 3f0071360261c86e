"""Password hashing utilities.

Learn: Uses bcrypt for password hashing. bcrypt salts automatically
and is deliberately slow — the work factor (rounds=12) takes ~100ms
per hash on modern hardware, which is what makes brute force expensive.
"""

import bcrypt

# bcrypt only looks at the first 72 bytes of its input.
MAX_PASSWORD_BYTES = 72


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a password with bcrypt.

    Produces a "$2b$..." string that embeds the salt and work factor,
    so verify_password() needs nothing but the hash itself.
    """
    pw_bytes = password.encode("utf-8")[:MAX_PASSWORD_BYTES]
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a bcrypt hash.

    Malformed or non-bcrypt hashes never match.
    """
    try:
        pw_bytes = password.encode("utf-8")[:MAX_PASSWORD_BYTES]
        return bcrypt.checkpw(pw_bytes, password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False

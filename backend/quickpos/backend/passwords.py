# Overview: Password and session-token hashing shared by the auth backends.

"""
Credential hashing helpers.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Session tokens are 32 random bytes, hex-encoded
- Tokens hashed with SHA-256 before storage (fast, one-way)
"""

import bcrypt
import hashlib
import secrets
from datetime import timedelta

# Maximum session length
SESSION_ABSOLUTE_TIMEOUT = timedelta(hours=24)


def hash_password(password: str, rounds: int = 12) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt comparison; malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def generate_token() -> str:
    """Plaintext token sent to the client (never stored)."""
    return secrets.token_hex(32)  # 32 bytes = 64 hex characters


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode('utf-8')).hexdigest()

"""bcrypt 密码哈希"""

import bcrypt

DEFAULT_ROUNDS = 12

# bcrypt only reads the first 72 bytes; bcrypt>=5 rejects longer input
MAX_PASSWORD_BYTES = 72


def check_password_length(password: str) -> str:
    """Raise ValueError when the UTF-8 encoding exceeds what bcrypt accepts."""
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
    return password


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    check_password_length(password)
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored hash is not a bcrypt hash, or the password is over the bcrypt limit
        return False

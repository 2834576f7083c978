"""Typed failures raised by the security core."""


class VaultError(Exception):
    """Base class for every error raised by otpvault."""


class ConfigError(VaultError):
    """Key material is missing or malformed; the process must not start."""


class DecryptError(VaultError):
    """A stored blob is malformed or does not match the key."""


class InvalidSecret(VaultError):
    """A TOTP shared secret is not valid Base32."""


class InvalidTimestamp(VaultError, ValueError):
    """An evaluation instant lies before the Unix epoch."""


# ── Session token failures ──

class SessionError(VaultError):
    """A session token could not be accepted."""


class Malformed(SessionError):
    pass


class InvalidSignature(SessionError):
    pass


class Expired(SessionError):
    pass


# ── Access gate failures ──

class AccessError(VaultError):
    status_code = 500
    detail = "Error"

    def __init__(self, detail: str = None):
        super().__init__(detail or self.detail)
        if detail:
            self.detail = detail


class Unauthorized(AccessError):
    status_code = 401
    detail = "Unauthorized"


class Forbidden(AccessError):
    status_code = 403
    detail = "Forbidden"

"""Authentication: bearer tokens and password hashing."""

from marketplace.auth.passwords import hash_password, verify_password
from marketplace.auth.tokens import TokenClient, TokenPayload

__all__ = ["TokenClient", "TokenPayload", "hash_password", "verify_password"]

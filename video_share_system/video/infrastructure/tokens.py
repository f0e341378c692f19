"""
Share Token Generators.
"""

import secrets

from ..domain.interfaces import TokenGenerator


class SecureTokenGenerator(TokenGenerator):
    """URL-safe tokens drawn from the operating system's CSPRNG"""

    def __init__(self, token_bytes: int = 32):
        if token_bytes < 16:
            raise ValueError("Share tokens need at least 16 random bytes")
        self.token_bytes = token_bytes

    def generate(self) -> str:
        return secrets.token_urlsafe(self.token_bytes)

import hmac
import secrets
from time import monotonic
from typing import Callable

from .exceptions import CSRFError
from .ttl_store import TTLStore

DEFAULT_TOKEN_TTL = 24 * 60 * 60


class CSRFTokenStore:
    """
    Issues and checks one CSRF token per user/session key.
    """

    def __init__(self, ttl: float = DEFAULT_TOKEN_TTL, clock: Callable[[], float] = monotonic):
        self._store: TTLStore[str] = TTLStore(ttl, clock=clock)

    @staticmethod
    def generate_token() -> str:
        return secrets.token_hex(32)

    def issue(self, key: str) -> str:
        """Generate, store and return a fresh token for `key`."""
        self._store.sweep()
        token = self.generate_token()
        self._store.put(f"csrf:{key}", token)
        return token

    def validate(self, key: str, token: str) -> bool:
        stored = self._store.get(f"csrf:{key}")
        if not stored or not token:
            return False
        return hmac.compare_digest(stored, token)

    def require(self, key: str, token: str) -> None:
        """
        :raises CSRFError: if the token is missing, expired or wrong
        """
        if not self.validate(key, token):
            raise CSRFError("Invalid or expired CSRF token")

    def invalidate(self, key: str) -> None:
        self._store.invalidate(f"csrf:{key}")

    def __len__(self) -> int:
        return len(self._store)

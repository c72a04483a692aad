"""Credential allow-list validation."""

from typing import Iterable, Optional


class KeyValidator:
    """Membership check of a presented credential against a fixed allow-list."""

    def __init__(self, allowed_keys: Iterable[str]):
        self._allowed = frozenset(key for key in allowed_keys if key)

    def is_valid(self, credential: Optional[str]) -> bool:
        """Return True only for a non-empty credential on the allow-list."""
        if not credential:
            return False
        return credential in self._allowed

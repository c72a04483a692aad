"""
Tests for the credential allow-list.
"""

import pytest

from src.config import DEFAULT_API_KEYS
from src.services.key_validator import KeyValidator


class TestKeyValidator:
    """Test cases for KeyValidator."""

    @pytest.fixture
    def validator(self):
        return KeyValidator(DEFAULT_API_KEYS)

    @pytest.mark.parametrize("key", DEFAULT_API_KEYS)
    def test_allowed_keys_are_valid(self, validator, key):
        assert validator.is_valid(key) is True

    @pytest.mark.parametrize("key", ["", None, "unknown-key", "KITTY-SECRET-KEY", " kitty-secret-key"])
    def test_other_strings_are_invalid(self, validator, key):
        assert validator.is_valid(key) is False

    def test_empty_entries_in_allow_list_never_match(self):
        validator = KeyValidator(["", "only-key"])

        assert validator.is_valid("") is False
        assert validator.is_valid("only-key") is True

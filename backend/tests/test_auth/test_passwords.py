"""Unit tests for password hashing and the registration password policy."""

import pytest

from gymapp.auth.passwords import hash_password, password_policy_errors, verify_password


class TestHashPassword:
    """Test password hashing."""

    def test_hash_differs_from_plaintext(self):
        hashed = hash_password("Mypassword1!")
        assert hashed != "Mypassword1!"

    def test_same_password_different_salts(self):
        """Hashing the same password twice should produce different hashes (different salts)."""
        assert hash_password("Samepass1!") != hash_password("Samepass1!")


class TestVerifyPassword:
    def test_correct_password_verifies(self):
        hashed = hash_password("Testpass123!")
        assert verify_password("Testpass123!", hashed) is True

    def test_wrong_password_fails(self):
        hashed = hash_password("Testpass123!")
        assert verify_password("testpass123!", hashed) is False


class TestPasswordPolicy:
    def test_strong_password_passes(self):
        assert password_policy_errors("Str0ng!pass") == []

    def test_too_short(self):
        assert "Password must be at least 8 characters long" in password_policy_errors("Ab1!")

    @pytest.mark.parametrize(
        ("password", "message"),
        [
            ("UPPERCASE1!", "Password must include a lowercase letter"),
            ("lowercase1!", "Password must include an uppercase letter"),
            ("NoDigits!!", "Password must include a number"),
            ("NoSpecial12", "Password must include a special character"),
        ],
    )
    def test_each_rule_reported(self, password: str, message: str):
        assert password_policy_errors(password) == [message]

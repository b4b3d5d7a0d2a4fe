"""Tests for password hashing and tokens."""
from datetime import timedelta

from jose import jwt

from spendshare.core.auth import create_access_token, get_password_hash, verify_password
from spendshare.core.config import settings


class TestPasswordHashing:
    """Test password hashing and verification."""

    def test_hash_password_different_outputs(self):
        """Hashing the same password twice uses different salts."""
        password = "MySecurePassword123"
        assert get_password_hash(password) != get_password_hash(password)

    def test_verify_password_correct(self):
        hashed = get_password_hash("MySecurePassword123")
        assert verify_password("MySecurePassword123", hashed) is True

    def test_verify_password_incorrect(self):
        hashed = get_password_hash("MySecurePassword123")
        assert verify_password("WrongPassword456", hashed) is False
        assert verify_password("", hashed) is False


class TestAccessToken:
    def test_token_carries_subject(self):
        token = create_access_token("507f1f77bcf86cd799439011")
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])

        assert payload["sub"] == "507f1f77bcf86cd799439011"
        assert payload["exp"] > payload["iat"]

    def test_custom_expiry(self):
        token = create_access_token("abc", expires_delta=timedelta(minutes=5))
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])

        assert payload["exp"] - payload["iat"] == 300

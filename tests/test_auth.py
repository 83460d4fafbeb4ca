"""
Unit tests for authentication module
"""
import pytest
from datetime import timedelta
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from app.auth import ALGORITHM, create_access_token, decode_token, get_current_user
from app.config import JWT_SECRET


class TestJWTTokens:
    def test_create_access_token(self):
        """Test access token creation"""
        token = create_access_token("test_user_123", email="user@example.com")

        assert isinstance(token, str)
        payload = decode_token(token)
        assert payload["sub"] == "test_user_123"
        assert payload["email"] == "user@example.com"

    def test_token_expiration(self):
        """Test token expiration"""
        token = create_access_token("test_user_123", expires_delta=timedelta(seconds=-1))
        assert decode_token(token) is None

    def test_invalid_token(self):
        """Test invalid token handling"""
        assert decode_token("invalid.token.here") is None

    def test_wrong_secret(self):
        token = jwt.encode({"sub": "someone"}, "another-secret", algorithm=ALGORITHM)
        assert decode_token(token) is None

    def test_missing_subject(self):
        token = jwt.encode({"email": "nobody@example.com"}, JWT_SECRET, algorithm=ALGORITHM)
        assert decode_token(token) is None

    def test_audience_not_enforced(self):
        """Provider tokens carry their own audience"""
        token = jwt.encode({"sub": "abc", "aud": "some-other-app"}, JWT_SECRET, algorithm=ALGORITHM)
        assert decode_token(token)["sub"] == "abc"


class TestCurrentUser:
    def test_valid_credentials(self):
        token = create_access_token("user-9", email="nine@example.com")
        user = get_current_user(HTTPAuthorizationCredentials(scheme="Bearer", credentials=token))
        assert user == {"user_id": "user-9", "email": "nine@example.com"}

    def test_missing_credentials(self):
        with pytest.raises(HTTPException) as exc:
            get_current_user(None)
        assert exc.value.status_code == 401

    def test_bad_token(self):
        with pytest.raises(HTTPException) as exc:
            get_current_user(HTTPAuthorizationCredentials(scheme="Bearer", credentials="garbage"))
        assert exc.value.status_code == 401

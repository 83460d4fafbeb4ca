from datetime import datetime, timedelta
from typing import Optional
import structlog

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt, JWTError

from app.config import JWT_SECRET

logger = structlog.get_logger()

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 8

bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(subject: str, email: Optional[str] = None, expires_delta: Optional[timedelta] = None) -> str:
    """Mint a token shaped like the identity provider's. Used for local development and tests."""
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {"sub": subject, "exp": expire, "aud": "authenticated"}
    if email:
        to_encode["email"] = email
    encoded_jwt = jwt.encode(to_encode, JWT_SECRET, algorithm=ALGORITHM)

    logger.info("access_token_created", user_id=subject, expires_at=expire.isoformat())
    return encoded_jwt


def decode_token(token: str) -> Optional[dict]:
    try:
        # Expiry is checked by jose; the audience varies between providers
        payload = jwt.decode(token, JWT_SECRET, algorithms=[ALGORITHM], options={"verify_aud": False})
    except JWTError as e:
        logger.warning("token_verification_failed", error=str(e))
        return None

    if not payload.get("sub"):
        logger.warning("token_missing_subject")
        return None
    return payload


def get_current_user(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> dict:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authorization header required")
    payload = decode_token(credentials.credentials)
    if payload is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")
    return {"user_id": payload["sub"], "email": payload.get("email", "")}

"""
JWT Authentication for FastAPI

Tokens are minted by the external auth service; this module only verifies
them. The `sub` claim carries the user id.
"""
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from config.settings import settings

# auto_error=False so anonymous callers reach the optional dependency
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/token", auto_error=False)


def decode_user_id(token: str) -> Optional[str]:
    """
    Verify a bearer token and return its subject.

    Args:
        token: Encoded JWT

    Returns:
        User id, or None when the token is invalid or has no subject
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    user_id = payload.get("sub")
    return str(user_id) if user_id else None


def get_current_user_id(token: Optional[str] = Depends(oauth2_scheme)) -> str:
    """
    Authenticated user id.

    Raises:
        HTTPException: 401 when the token is missing or invalid
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if not token:
        raise credentials_exception
    user_id = decode_user_id(token)
    if user_id is None:
        raise credentials_exception
    return user_id


def get_optional_user_id(token: Optional[str] = Depends(oauth2_scheme)) -> Optional[str]:
    """User id when a valid token is present, otherwise None."""
    if not token:
        return None
    return decode_user_id(token)

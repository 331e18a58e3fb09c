"""
Security utilities for ChatPad API.
Consolidated JWT, password and API key handling.
"""
from datetime import datetime, timedelta
from typing import Optional, Literal
import hashlib
import uuid
import secrets

import jwt
import bcrypt

from chatpad.config import settings


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return bcrypt.checkpw(
        plain_password.encode('utf-8'),
        hashed_password.encode('utf-8')
    )


def get_password_hash(password: str) -> str:
    """Hash a password."""
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


# Token types
TokenType = Literal["access"]


def create_token(
    data: dict,
    token_type: TokenType = "access",
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a JWT token.

    Args:
        data: Payload data (should include user_id)
        token_type: token kind stored in the 'type' claim
        expires_delta: Custom expiration time

    Returns:
        Encoded JWT string
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({
        "exp": expire,
        "iat": datetime.utcnow(),
        "type": token_type,
        "jti": str(uuid.uuid4())
    })

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create an access token."""
    return create_token(data, token_type="access", expires_delta=expires_delta)


def decode_token(token: str) -> Optional[dict]:
    """
    Decode and validate a JWT token.

    Returns:
        Decoded payload dict or None if invalid
    """
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def verify_token(token: str, token_type: TokenType = "access") -> Optional[dict]:
    """
    Verify a token and check its type.

    Returns:
        Decoded payload if valid and correct type, None otherwise
    """
    payload = decode_token(token)
    if payload and payload.get("type") == token_type:
        return payload
    return None


def generate_secure_token(length: int = 32) -> str:
    """Generate a secure random token for invitations, webhook secrets, etc."""
    return secrets.token_urlsafe(length)


def generate_api_key() -> str:
    """Generate a plaintext API key. Only its hash is persisted."""
    return f"cp_{secrets.token_urlsafe(32)}"


def hash_api_key(key: str) -> str:
    """SHA-256 digest used to look up API keys."""
    return hashlib.sha256(key.encode('utf-8')).hexdigest()

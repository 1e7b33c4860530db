import logging
from datetime import datetime, timedelta, timezone
import re

from fastapi import HTTPException
from jose import jwt
from passlib.context import CryptContext
from passlib.exc import UnknownHashError

from momentum.config.settings import settings

# Reduce passlib noise
logging.getLogger("passlib").setLevel(logging.ERROR)

pwd_context = CryptContext(
    schemes=["bcrypt", "bcrypt_sha256"],
    deprecated="auto"
)

# ---------------- PASSWORD VALIDATION ---------------- #

def validate_password(password: str):
    """
    Validates password strength requirements.

    Args:
        password: The password string to validate

    Raises:
        HTTPException: If password doesn't meet requirements
    """
    if len(password) < 8:
        raise HTTPException(
            status_code=400,
            detail="password: must be at least 8 characters long"
        )

    if not re.search(r"[A-Za-z]", password):
        raise HTTPException(
            status_code=400,
            detail="password: must contain at least one letter"
        )

    if not re.search(r"[0-9]", password):
        raise HTTPException(
            status_code=400,
            detail="password: must contain at least one number (0-9)"
        )


def normalize_email(email: str) -> str:
    """
    Lowercases an email address and checks its basic shape.

    Raises:
        HTTPException: If the address has no local part or domain
    """
    email = email.strip().lower()
    if not re.fullmatch(r"[^@\s]+@[^@\s]+\.[^@\s]+", email):
        raise HTTPException(
            status_code=400,
            detail="email: invalid email address"
        )
    return email

# ---------------- PASSWORD HASHING ---------------- #

def hash_password(password: str) -> str:
    """
    Hashes a password using the configured context.

    Args:
        password: The plain text password

    Returns:
        str: The hashed password
    """
    return pwd_context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    """
    Verifies a plain password against a hash.

    Args:
        password: The plain text password
        hashed_password: The stored hash

    Returns:
        bool: True if password matches, False otherwise

    Raises:
        HTTPException: If hash in database is invalid/unknown
    """
    try:
        return pwd_context.verify(password, hashed_password)
    except UnknownHashError:
        raise HTTPException(
            status_code=500,
            detail="Invalid password hash stored in database"
        )

# ---------------- JWT TOKEN ---------------- #

def create_access_token(data: dict, expires_minutes: int = None):
    """
    Creates a JWT access token with expiration.

    Args:
        data: Payload data to include in the token
        expires_minutes: Lifetime override, defaults to the configured session length

    Returns:
        str: Encoded JWT token
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    to_encode.update({"exp": expire})

    return jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )

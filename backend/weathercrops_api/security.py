"""
WeatherCrops API - Password Hashing
====================================

What:  One-way hashing of user passwords before they are stored.
How:   bcrypt via passlib's CryptContext. Hashes are salted and
       self-describing ("$2b$12$..."), so the column holds everything
       needed for a later verification.
Who:   Called by UserService during registration.
"""

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """
    Hash a plaintext password using bcrypt.

    Raises:
        ValueError: if `password` is empty or not a string. Length rules are
        enforced by the caller before hashing.
    """
    if not isinstance(password, str) or not password:
        raise ValueError("Password must be a non-empty string.")
    return pwd_context.hash(password)

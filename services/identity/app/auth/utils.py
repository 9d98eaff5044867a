from passlib.context import CryptContext
from passlib.exc import UnknownHashError

context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    return context.hash(password)


def verify_password(plain: str, hashed: str | None) -> bool:
    """Salted hash comparison only; a missing or foreign hash never matches."""
    if not hashed:
        return False
    try:
        return context.verify(plain, hashed)
    except (UnknownHashError, ValueError):
        return False

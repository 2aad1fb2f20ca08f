import hashlib
import re

from passlib.context import CryptContext

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto"
)

# au moins une minuscule, une majuscule, un chiffre et un caractère spécial
STRONG_PASSWORD_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,}$")


def _prehash(password: str) -> str:
    # bcrypt tronque à 72 octets
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def hash_password(password: str) -> str:
    return pwd_context.hash(_prehash(password))


def verify_password(password: str, hashed: str | None) -> bool:
    if not password or not hashed:
        return False
    return pwd_context.verify(_prehash(password), hashed)


def is_strong_password(password: str) -> bool:
    return bool(STRONG_PASSWORD_RE.match(password))

"""
➡️ But : Définir la structure des tables de la base (ORM).

Représente les tables ayant un rapport avec les users : identité, rôle, solde de coins,
vérification d'e-mail, comptes OAuth liés.

🔹 Avantages :

Le rôle est une énumération fermée (USER / ADMIN / SUPER_ADMIN).

Le solde de coins ne peut pas passer sous zéro (contrainte CHECK).
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import CheckConstraint, UniqueConstraint
from sqlmodel import Field

from .base import BaseModelDB, UTCDateTime


class UserRole(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


class User(BaseModelDB, table=True):
    __table_args__ = (
        CheckConstraint("coin >= 0", name="ck_user_coin_non_negative"),
    )

    name: Optional[str] = None
    email: str = Field(index=True, unique=True)
    hashed_password: Optional[str] = None   # None pour les comptes OAuth
    image: Optional[str] = None
    role: UserRole = Field(default=UserRole.USER)
    coin: int = Field(default=0)

    # Vérification d'e-mail par OTP
    email_verified: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    verification_code: Optional[str] = None
    verification_expires: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)

    last_login: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)


class Account(BaseModelDB, table=True):
    """Compte OAuth lié (ex: GitHub) ; porte le jeton délégué."""
    __table_args__ = (
        UniqueConstraint("provider", "provider_account_id", name="uq_account_provider"),
    )

    user_id: int = Field(foreign_key="user.id", index=True)
    provider: str = Field(index=True)
    provider_account_id: str
    access_token: Optional[str] = None

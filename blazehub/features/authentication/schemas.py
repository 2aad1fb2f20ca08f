from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field, field_validator
from blazehub.core.schemas import APIModel

from blazehub.db.models.users import UserRole
from blazehub.security.password import is_strong_password

PASSWORD_RULE = (
    "Password must contain at least one uppercase letter, one lowercase letter, "
    "one number, and one special character"
)


def _check_password(value: str) -> str:
    if not is_strong_password(value):
        raise ValueError(PASSWORD_RULE)
    return value


# ---------- Inputs ----------

class RegisterIn(APIModel):
    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)

    @field_validator("password")
    @classmethod
    def strong_password(cls, value: str) -> str:
        return _check_password(value)

class VerifyIn(APIModel):
    email: Optional[str] = None
    otp: Optional[str] = None

class SignInIn(APIModel):
    email: EmailStr
    password: str

class ForgotPasswordIn(APIModel):
    email: EmailStr

class ResetPasswordIn(APIModel):
    token: str
    password: str = Field(min_length=8, max_length=128)

    @field_validator("password")
    @classmethod
    def strong_password(cls, value: str) -> str:
        return _check_password(value)

class GitHubLinkIn(APIModel):
    provider_account_id: str = Field(min_length=1)
    access_token: str = Field(min_length=1)


# ---------- Outputs ----------

class RegisteredUserOut(APIModel):
    name: Optional[str]
    email: str

class RegisterOut(APIModel):
    user: RegisteredUserOut

class MessageOut(APIModel):
    message: str

class SessionOut(APIModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # secondes (durée de la session)

class MeOut(APIModel):
    id: int
    name: Optional[str]
    email: str
    image: Optional[str] = None
    role: UserRole
    coin: int
    email_verified: Optional[datetime] = None
    github_linked: bool = False

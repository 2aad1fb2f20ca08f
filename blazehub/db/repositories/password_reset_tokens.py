from typing import Optional
from sqlalchemy import delete
from sqlmodel import select

from blazehub.db.repositories.base import BaseRepository
from blazehub.db.models.password_reset_tokens import PasswordResetToken

class PasswordResetTokenRepository(BaseRepository[PasswordResetToken]):
    model = PasswordResetToken

    def get_by_token(self, token: str) -> Optional[PasswordResetToken]:
        return self.session.exec(
            select(self.model).where(self.model.token == token)
        ).first()

    def delete_for_user(self, user_id: int, *, commit: bool = True) -> None:
        self.session.exec(delete(PasswordResetToken).where(PasswordResetToken.user_id == user_id))  # type: ignore[call-overload]
        if commit:
            self.session.commit()

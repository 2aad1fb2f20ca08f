from typing import Optional
from sqlalchemy import delete
from sqlmodel import select

from blazehub.db.repositories.base import BaseRepository
from blazehub.db.models.purchases import Purchase

class PurchaseRepository(BaseRepository[Purchase]):
    model = Purchase

    def get_for(self, user_id: int, project_id: int) -> Optional[Purchase]:
        return self.session.exec(
            select(self.model)
            .where(self.model.user_id == user_id)
            .where(self.model.project_id == project_id)
        ).first()

    def exists(self, user_id: int, project_id: int) -> bool:
        return self.get_for(user_id, project_id) is not None

    def delete_for_project(self, project_id: int, *, commit: bool = True) -> None:
        self.session.exec(delete(Purchase).where(Purchase.project_id == project_id))  # type: ignore[call-overload]
        if commit:
            self.session.commit()

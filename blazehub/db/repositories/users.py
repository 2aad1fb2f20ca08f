"""
➡️ But : Encapsuler toutes les opérations de base de données.

UserRepository / AccountRepository : CRUD sur les tables User et Account.

Ne contient aucune logique métier, juste de la persistance.

🔹 Avantages :

Réutilisable (les services n'ont pas à savoir comment la DB fonctionne).

Testable indépendamment (mock du repo sans base réelle).
"""

from __future__ import annotations

from typing import Optional
from sqlalchemy import delete, update
from sqlmodel import select

from blazehub.db.repositories.base import BaseRepository
from blazehub.db.models.users import User, Account

class UserRepository(BaseRepository[User]):
    """
    Repository pour la table User.
    Hérite du CRUD générique de BaseRepository.
    Contient uniquement les requêtes spécifiques à User.
    """
    model = User

    def get_by_email(self, email: str) -> Optional[User]:
        """Retourne un utilisateur par son e-mail."""
        return self.session.exec(
            select(self.model).where(self.model.email == email)
        ).first()

    def increment_coins(self, user_id: int, amount: int, *, commit: bool = True) -> int:
        """
        Ajoute (ou retire si amount < 0) des coins en une seule requête UPDATE.
        Le solde reste >= 0 : la ligne n'est modifiée que si le résultat le permet.
        Retourne le nombre de lignes modifiées (0 si solde insuffisant ou user absent).
        """
        statement = (
            update(User)
            .where(User.id == user_id)
            .where(User.coin + amount >= 0)
            .values(coin=User.coin + amount)
        )
        result = self.session.exec(statement)  # type: ignore[call-overload]
        if commit:
            self.session.commit()
        else:
            self.session.flush()
        return result.rowcount

    def get_coins(self, user_id: int) -> Optional[int]:
        return self.session.exec(select(User.coin).where(User.id == user_id)).first()


class AccountRepository(BaseRepository[Account]):
    model = Account

    def get_for_user(self, user_id: int, provider: str) -> Optional[Account]:
        return self.session.exec(
            select(self.model)
            .where(self.model.user_id == user_id)
            .where(self.model.provider == provider)
        ).first()

    def delete_for_user(self, user_id: int, *, commit: bool = True) -> None:
        self.session.exec(delete(Account).where(Account.user_id == user_id))  # type: ignore[call-overload]
        if commit:
            self.session.commit()

from typing import Any, Generic, Optional, Sequence, Type, TypeVar
from sqlmodel import SQLModel, Session, select, func

# Type générique pour le modèle (User, Post, Project, etc.)
ModelT = TypeVar("ModelT", bound=SQLModel)

class BaseRepository(Generic[ModelT]):
    """
    Repository de base pour les opérations CRUD standards.

    👉 Ne contient aucune logique métier.
    👉 Gère la persistance générique : create, read, update, delete, count, list.
    👉 Les repositories concrets définissent `model = MaClasseSQLModel`.
    👉 commit=False laisse le service orchestrer une transaction globale
       (ex: débit de coins + achat), le service appelle alors `commit()`.
    """

    model: Type[ModelT]

    def __init__(self, session: Session):
        self.session = session

    # ---------- READ ----------

    def list(self, offset: int = 0, limit: int = 100) -> Sequence[ModelT]:
        """Retourne une liste paginée des enregistrements, plus récents d'abord."""
        statement = (
            select(self.model)
            .order_by(self.model.created_at.desc(), self.model.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return self.session.exec(statement).all()

    def count(self, *criteria) -> int:
        """Retourne le nombre d'enregistrements (filtrés par `criteria` si fournis)."""
        statement = select(func.count(self.model.id))
        if criteria:
            statement = statement.where(*criteria)
        return int(self.session.exec(statement).one())

    def get(self, id_: Any) -> Optional[ModelT]:
        """Retourne un enregistrement par son identifiant, ou None."""
        return self.session.get(self.model, id_)

    # ---------- CREATE ----------

    def create(self, *, commit: bool = True, **fields) -> ModelT:
        entity = self.model(**fields)
        self.session.add(entity)
        if commit:
            self.session.commit()
            self.session.refresh(entity)
        else:
            # flush pour obtenir l'ID sans commit (utile pour FKs)
            self.session.flush()
        return entity

    # ---------- UPDATE ----------

    def update(self, entity: ModelT, *, commit: bool = True, **changes) -> ModelT:
        for key, value in changes.items():
            setattr(entity, key, value)
        self.session.add(entity)
        if commit:
            self.session.commit()
            self.session.refresh(entity)
        else:
            self.session.flush()
        return entity

    # ---------- DELETE ----------

    def delete(self, entity: ModelT, *, commit: bool = True) -> None:
        self.session.delete(entity)
        if commit:
            self.session.commit()
        else:
            self.session.flush()

    # ---------- Transaction ----------

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    def created_since(self, since) -> Sequence[Any]:
        """Dates de création des enregistrements depuis `since` (agrégations par période)."""
        statement = select(self.model.created_at).where(self.model.created_at >= since)
        return self.session.exec(statement).all()

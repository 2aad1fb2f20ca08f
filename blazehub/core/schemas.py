"""
➡️ But : Base commune des schémas d'entrée/sortie de l'API.

Attributs Python en snake_case, JSON en camelCase (likeCount, isFollowing, totalCount...).
Les entrées acceptent les deux formes.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

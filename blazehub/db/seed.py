from pathlib import Path
from typing import Any, Dict, List

import yaml
from sqlmodel import Session, select

from blazehub.db.models.base import utcnow
from blazehub.db.models.users import User, UserRole
from blazehub.db.models.projects import Project, ProjectCategory
from blazehub.db.models.posts import Post
from blazehub.security.password import hash_password


# -----------------------------
# YAML loader
# -----------------------------
def load_seed_yaml(seed_path: str | Path) -> Dict[str, Any]:
    path = Path(seed_path)
    if not path.exists():
        raise FileNotFoundError(f"Seed YAML introuvable: {path}")

    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Le YAML de seed doit contenir un objet racine (mapping).")
    return data


def _user_ids_by_key(session: Session, data: Dict[str, Any]) -> Dict[str, int]:
    """user key (YAML) -> User.id, via l'e-mail (la clé n'existe pas en DB)."""
    out: Dict[str, int] = {}
    for u in data.get("users", []):
        user = session.exec(select(User).where(User.email == u["email"])).first()
        if user:
            out[u["key"]] = user.id
    return out


# -----------------------------
# Seed Users
# -----------------------------
def seed_users(session: Session, data: Dict[str, Any]) -> None:
    if session.exec(select(User)).first():
        print("ℹ️ Les utilisateurs existent déjà, aucune insertion effectuée.")
        return

    users: List[Dict[str, Any]] = data.get("users", [])
    if not users:
        print("⚠️ Aucun utilisateur dans le YAML (clé 'users').")
        return

    now = utcnow()
    session.add_all([
        User(
            name=u.get("name"),
            email=u["email"],
            hashed_password=hash_password(u["password"]),
            role=UserRole(u.get("role", "USER")),
            coin=int(u.get("coin", 0)),
            email_verified=now if u.get("verified", True) else None,
        )
        for u in users
    ])
    session.commit()
    print(f"✅ {len(users)} utilisateurs insérés.")


# -----------------------------
# Seed Projects
# -----------------------------
def seed_projects(session: Session, data: Dict[str, Any]) -> None:
    if session.exec(select(Project)).first():
        print("ℹ️ Les projets existent déjà, aucune insertion effectuée.")
        return

    projects: List[Dict[str, Any]] = data.get("projects", [])
    if not projects:
        print("⚠️ Aucun projet dans le YAML (clé 'projects').")
        return

    owners = _user_ids_by_key(session, data)
    rows = []
    for p in projects:
        owner_id = owners.get(p["owner_key"])
        if owner_id is None:
            print(f"⚠️ Propriétaire inconnu (projet ignoré): {p['name']} -> {p['owner_key']}")
            continue
        category = ProjectCategory(p.get("category", "free"))
        rows.append(Project(
            name=p["name"],
            description=p["description"],
            category=category,
            price=None if category == ProjectCategory.FREE else int(p["price"]),
            github_repo=p.get("github_repo"),
            owner_id=owner_id,
        ))
    session.add_all(rows)
    session.commit()
    print(f"✅ {len(rows)} projets insérés.")


# -----------------------------
# Seed Posts
# -----------------------------
def seed_posts(session: Session, data: Dict[str, Any]) -> None:
    if session.exec(select(Post)).first():
        print("ℹ️ Les posts existent déjà, aucune insertion effectuée.")
        return

    posts: List[Dict[str, Any]] = data.get("posts", [])
    if not posts:
        print("⚠️ Aucun post dans le YAML (clé 'posts').")
        return

    authors = _user_ids_by_key(session, data)
    rows = [
        Post(
            title=p["title"],
            description=p.get("description"),
            markdown=p.get("markdown", ""),
            tags=list(p.get("tags", [])),
            feature=p.get("feature"),
            author_id=authors[p["author_key"]],
        )
        for p in posts
        if p["author_key"] in authors
    ]
    session.add_all(rows)
    session.commit()
    print(f"✅ {len(rows)} posts insérés.")


def seed_all(session: Session, seed_path: str | Path) -> None:
    data = load_seed_yaml(seed_path)

    seed_users(session, data)
    seed_projects(session, data)
    seed_posts(session, data)

import logging
from typing import Dict, List, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from blazehub.db.models.base import utcnow
from blazehub.db.models.posts import Post
from blazehub.db.models.users import User
from blazehub.db.repositories.likes import LikeRepository
from blazehub.db.repositories.posts import PostRepository
from blazehub.db.repositories.users import UserRepository
from blazehub.security.guard import Principal
from blazehub.features.users.schemas import UserSummaryOut
from blazehub.features.posts.schemas import (
    PostIn,
    PostUpdateIn,
    PostOut,
    PostDetailOut,
    PostLinkOut,
    VoteIn,
    VoteCountsOut,
)

logger = logging.getLogger(__name__)

VOTE_VALUES = (1, -1)


class PostService:
    """
    Service Posts : fil d'articles, navigation suivant/précédent et votes.
    Seul l'auteur modifie ou supprime son post.
    """

    def __init__(self, *, repo: PostRepository, like_repo: LikeRepository, user_repo: UserRepository):
        self.repo = repo
        self.like_repo = like_repo
        self.user_repo = user_repo

    # ---------- Helpers ----------
    def _get_or_404(self, post_id: int) -> Post:
        post = self.repo.get(post_id)
        if not post:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
        return post

    def _ensure_author(self, post: Post, principal: Principal) -> None:
        if post.author_id != principal.id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    def _authors(self, posts: List[Post]) -> Dict[int, User]:
        out: Dict[int, User] = {}
        for author_id in {p.author_id for p in posts}:
            user = self.user_repo.get(author_id)
            if user:
                out[author_id] = user
        return out

    @staticmethod
    def _to_out(post: Post, author: Optional[User], counts: Tuple[int, int]) -> PostOut:
        return PostOut(
            id=post.id,
            title=post.title,
            description=post.description,
            markdown=post.markdown,
            tags=list(post.tags or []),
            feature=post.feature,
            created_at=post.created_at,
            updated_at=post.updated_at,
            author=UserSummaryOut.model_validate(author) if author else None,
            like_count=counts[0],
            dislike_count=counts[1],
        )

    # ---------- Lecture ----------
    def list_posts(self, query: Optional[str] = None) -> List[PostOut]:
        posts = list(self.repo.search(query))
        authors = self._authors(posts)
        counts = self.like_repo.counts_for_posts(p.id for p in posts)
        return [self._to_out(p, authors.get(p.author_id), counts[p.id]) for p in posts]

    def get_post(self, post_id: int) -> PostDetailOut:
        post = self._get_or_404(post_id)
        out = self._to_out(post, self.user_repo.get(post.author_id), self.like_repo.counts_for_post(post.id))

        next_post = self.repo.next_after(post.created_at)
        prev_post = self.repo.previous_before(post.created_at)
        return PostDetailOut(
            **out.model_dump(),
            next_post=PostLinkOut(id=next_post.id, title=next_post.title) if next_post else None,
            prev_post=PostLinkOut(id=prev_post.id, title=prev_post.title) if prev_post else None,
        )

    # ---------- Écriture ----------
    def create_post(self, payload: PostIn, principal: Principal) -> PostOut:
        post = self.repo.create(
            title=payload.title,
            description=payload.description,
            markdown=payload.markdown,
            tags=payload.tags,
            feature=payload.feature,
            author_id=principal.id,
        )
        return self._to_out(post, self.user_repo.get(principal.id), (0, 0))

    def update_post(self, post_id: int, payload: PostUpdateIn, principal: Principal) -> PostOut:
        post = self._get_or_404(post_id)
        self._ensure_author(post, principal)

        changes = payload.model_dump(exclude_unset=True)
        if changes.get("title") is None:
            changes.pop("title", None)
        if "markdown" in changes and changes["markdown"] is None:
            changes["markdown"] = ""
        if "tags" in changes and changes["tags"] is None:
            changes["tags"] = []
        post = self.repo.update(post, updated_at=utcnow(), **changes)
        return self._to_out(post, self.user_repo.get(post.author_id), self.like_repo.counts_for_post(post.id))

    def delete_post(self, post_id: int, principal: Principal) -> None:
        post = self._get_or_404(post_id)
        self._ensure_author(post, principal)

        # votes et post dans la même transaction
        try:
            self.like_repo.delete_for_post(post.id, commit=False)
            self.repo.delete(post, commit=False)
            self.repo.commit()
        except SQLAlchemyError:
            self.repo.rollback()
            raise

    # ---------- Votes ----------
    def vote(self, post_id: int, payload: VoteIn, principal: Principal) -> VoteCountsOut:
        if payload.value not in VOTE_VALUES:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid value")
        self._get_or_404(post_id)

        existing = self.like_repo.get_vote(principal.id, post_id)
        if existing and existing.value == payload.value:
            # même vote renvoyé : on l'annule
            self.like_repo.delete(existing)
        elif existing:
            self.like_repo.update(existing, value=payload.value, updated_at=utcnow())
        else:
            self.like_repo.create(user_id=principal.id, post_id=post_id, value=payload.value)

        likes, dislikes = self.like_repo.counts_for_post(post_id)
        return VoteCountsOut(like_count=likes, dislike_count=dislikes)

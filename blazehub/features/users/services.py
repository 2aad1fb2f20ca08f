import logging
from typing import Optional

from fastapi import HTTPException, status

from blazehub.db.models.users import User, UserRole
from blazehub.db.repositories.follows import FollowRepository
from blazehub.db.repositories.security_audit_logs import SecurityAuditLogRepository
from blazehub.db.repositories.users import UserRepository
from blazehub.security import audit
from blazehub.security.audit import ClientContext, record_security_event
from blazehub.security.guard import Principal
from blazehub.features.users.schemas import (
    FollowStatusOut,
    RoleUpdateIn,
    RoleUpdateOut,
    CoinsOut,
    CoinsAddOut,
    UserAdminOut,
    UsersListOut,
)

logger = logging.getLogger(__name__)

ASSIGNABLE_ROLES = (UserRole.USER, UserRole.ADMIN)


class UserService:
    """
    Service Users : abonnements, rôles et solde de coins.
    Aucune logique SQL directe ici, erreurs en HTTPException propres.
    """

    def __init__(
        self,
        *,
        repo: UserRepository,
        follow_repo: FollowRepository,
        audit_repo: SecurityAuditLogRepository,
    ):
        self.repo = repo
        self.follow_repo = follow_repo
        self.audit_repo = audit_repo

    def _get_or_404(self, user_id: int) -> User:
        user = self.repo.get(user_id)
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        return user

    # ---------- Follow ----------
    def follow_status(self, target_id: int, principal: Optional[Principal]) -> FollowStatusOut:
        if principal is None:
            return FollowStatusOut(is_following=False)
        return FollowStatusOut(is_following=self.follow_repo.count_edges(principal.id, target_id) > 0)

    def toggle_follow(self, target_id: int, principal: Principal) -> FollowStatusOut:
        if principal.id == target_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot follow yourself")
        self._get_or_404(target_id)

        edge = self.follow_repo.get_edge(principal.id, target_id)
        if edge:
            self.follow_repo.delete(edge)
            return FollowStatusOut(is_following=False)

        self.follow_repo.create(follower_id=principal.id, following_id=target_id)
        return FollowStatusOut(is_following=True)

    # ---------- Rôle ----------
    def update_role(
        self,
        target_id: int,
        payload: RoleUpdateIn,
        principal: Principal,
        *,
        client: Optional[ClientContext] = None,
    ) -> RoleUpdateOut:
        if payload.role not in {r.value for r in ASSIGNABLE_ROLES}:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid role")

        user = self._get_or_404(target_id)
        if user.role == UserRole.SUPER_ADMIN:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cannot modify super admin role")

        previous = user.role
        user = self.repo.update(user, role=UserRole(payload.role))
        record_security_event(
            self.audit_repo,
            audit.ROLE_CHANGED,
            user_id=principal.id,
            details={"target": user.id, "from": previous.value, "to": user.role.value},
            client=client,
        )
        logger.info("User %s role changed %s -> %s by %s", user.id, previous.value, user.role.value, principal.id)
        return RoleUpdateOut(id=user.id, email=user.email, role=user.role)

    # ---------- Coins ----------
    def get_coins(self, principal: Principal) -> CoinsOut:
        coins = self.repo.get_coins(principal.id)
        if coins is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        return CoinsOut(coins=coins)

    def add_coins(self, principal: Principal, amount: int) -> CoinsAddOut:
        if amount <= 0:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid coins amount")
        if not self.repo.increment_coins(principal.id, amount):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        return CoinsAddOut(success=True, coins=self.repo.get_coins(principal.id) or 0, added=amount)

    # ---------- Admin ----------
    def list_users(self, *, offset: int = 0, limit: int = 100) -> UsersListOut:
        users = self.repo.list(offset=offset, limit=limit)
        return UsersListOut(
            users=[UserAdminOut.model_validate(u) for u in users],
            total_count=self.repo.count(),
        )

from typing import Optional

from fastapi import APIRouter, Depends

from blazehub.api.dependencies import get_user_service, get_client_ip_and_ua
from blazehub.security.guard import Principal, guard
from blazehub.features.users.services import UserService
from blazehub.features.users.schemas import FollowStatusOut, RoleUpdateIn, RoleUpdateOut

router = APIRouter(
    prefix="/users",
    tags=["users"],
    responses={404: {"description": "Not Found"}},
)

# -----------------------------
# Follow
# -----------------------------
@router.get(
    "/{user_id}/follow",
    summary="Est-ce que je suis cet utilisateur ?",
    description="Toujours `false` pour un visiteur anonyme.",
    response_model=FollowStatusOut,
)
def follow_status(
    user_id: int,
    principal: Optional[Principal] = Depends(guard("users.follow_status")),
    svc: UserService = Depends(get_user_service),
):
    return svc.follow_status(user_id, principal)


@router.post(
    "/{user_id}/follow",
    summary="Suivre / ne plus suivre (bascule)",
    response_model=FollowStatusOut,
    responses={400: {"description": "Impossible de se suivre soi-même"}},
)
def toggle_follow(
    user_id: int,
    principal: Principal = Depends(guard("users.follow")),
    svc: UserService = Depends(get_user_service),
):
    return svc.toggle_follow(user_id, principal)

# -----------------------------
# Rôle (super admin)
# -----------------------------
@router.patch(
    "/{user_id}/role",
    summary="Changer le rôle d'un utilisateur (USER / ADMIN)",
    response_model=RoleUpdateOut,
    responses={
        400: {"description": "Rôle invalide"},
        403: {"description": "Réservé au super admin, ou cible super admin"},
    },
)
def update_role(
    user_id: int,
    payload: RoleUpdateIn,
    principal: Principal = Depends(guard("users.role")),
    svc: UserService = Depends(get_user_service),
    client_ctx=Depends(get_client_ip_and_ua),
):
    return svc.update_role(user_id, payload, principal, client=client_ctx)

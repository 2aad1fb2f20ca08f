from fastapi import APIRouter, Depends

from blazehub.api.dependencies import get_user_service
from blazehub.security.guard import Principal, guard
from blazehub.features.users.services import UserService
from blazehub.features.users.schemas import CoinsOut, CoinsAddIn, CoinsAddOut

router = APIRouter(
    prefix="/user",
    tags=["account"],
)


@router.get("/coins", summary="Solde de coins", response_model=CoinsOut)
def get_coins(
    principal: Principal = Depends(guard("user.coins")),
    svc: UserService = Depends(get_user_service),
):
    return svc.get_coins(principal)


@router.post("/coins/add", summary="Créditer des coins", response_model=CoinsAddOut)
def add_coins(
    payload: CoinsAddIn,
    principal: Principal = Depends(guard("user.coins_add")),
    svc: UserService = Depends(get_user_service),
):
    return svc.add_coins(principal, payload.coins)

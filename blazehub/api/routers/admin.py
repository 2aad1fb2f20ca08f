from typing import List

from fastapi import APIRouter, Depends

from blazehub.api.dependencies import get_admin_service, get_user_service, pagination
from blazehub.security.guard import Principal, guard
from blazehub.features.admin.services import AdminService
from blazehub.features.admin.schemas import MetricsOut, ChartPointOut, SecurityStatsOut
from blazehub.features.users.services import UserService
from blazehub.features.users.schemas import UsersListOut

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    responses={401: {"description": "Non authentifié"}, 403: {"description": "Réservé aux admins"}},
)


@router.get("/metrics", summary="Métriques du contenu (30 derniers jours)", response_model=MetricsOut)
def metrics(
    principal: Principal = Depends(guard("admin.metrics")),
    svc: AdminService = Depends(get_admin_service),
):
    return svc.metrics()


@router.get("/metrics/chart", summary="Créations par mois (6 derniers mois)", response_model=List[ChartPointOut])
def metrics_chart(
    principal: Principal = Depends(guard("admin.metrics_chart")),
    svc: AdminService = Depends(get_admin_service),
):
    return svc.chart()


@router.get("/security/stats", summary="Statistiques de sécurité (24 dernières heures)", response_model=SecurityStatsOut)
def security_stats(
    principal: Principal = Depends(guard("admin.security_stats")),
    svc: AdminService = Depends(get_admin_service),
):
    return svc.security_stats()


@router.get("/users", summary="Lister les utilisateurs", response_model=UsersListOut)
def list_users(
    page: dict = Depends(pagination),
    principal: Principal = Depends(guard("admin.users")),
    svc: UserService = Depends(get_user_service),
):
    return svc.list_users(**page)

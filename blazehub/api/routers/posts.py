from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from blazehub.api.dependencies import get_post_service
from blazehub.security.guard import Principal, guard
from blazehub.features.posts.services import PostService
from blazehub.features.posts.schemas import (
    PostIn,
    PostUpdateIn,
    PostOut,
    PostDetailOut,
    VoteIn,
    VoteCountsOut,
)

router = APIRouter(
    prefix="/posts",
    tags=["posts"],
    responses={404: {"description": "Not Found"}},
)


@router.get(
    "",
    summary="Lister les posts (plus récents d'abord)",
    description="`q` filtre titre et description, sans tenir compte de la casse.",
    response_model=List[PostOut],
)
def list_posts(
    q: Optional[str] = Query(None, description="Recherche"),
    svc: PostService = Depends(get_post_service),
):
    return svc.list_posts(q)


@router.get(
    "/{post_id}",
    summary="Lire un post avec ses voisins (suivant / précédent)",
    response_model=PostDetailOut,
)
def get_post(post_id: int, svc: PostService = Depends(get_post_service)):
    return svc.get_post(post_id)


@router.post(
    "",
    summary="Créer un post",
    status_code=status.HTTP_201_CREATED,
    response_model=PostOut,
)
def create_post(
    payload: PostIn,
    principal: Principal = Depends(guard("posts.create")),
    svc: PostService = Depends(get_post_service),
):
    return svc.create_post(payload, principal)


@router.put(
    "/{post_id}",
    summary="Modifier un post (auteur uniquement)",
    response_model=PostOut,
    responses={403: {"description": "Pas l'auteur"}},
)
def update_post(
    post_id: int,
    payload: PostUpdateIn,
    principal: Principal = Depends(guard("posts.update")),
    svc: PostService = Depends(get_post_service),
):
    return svc.update_post(post_id, payload, principal)


@router.delete(
    "/{post_id}",
    summary="Supprimer un post et ses votes (auteur uniquement)",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={403: {"description": "Pas l'auteur"}},
)
def delete_post(
    post_id: int,
    principal: Principal = Depends(guard("posts.delete")),
    svc: PostService = Depends(get_post_service),
):
    svc.delete_post(post_id, principal)
    return None


@router.post(
    "/{post_id}/like",
    summary="Voter pour un post (1 = like, -1 = dislike)",
    description="Renvoyer le même vote l'annule. Les compteurs sont recalculés à chaque appel.",
    response_model=VoteCountsOut,
    responses={400: {"description": "Valeur invalide"}, 401: {"description": "Non authentifié"}},
)
def like_post(
    post_id: int,
    payload: VoteIn,
    principal: Principal = Depends(guard("posts.like")),
    svc: PostService = Depends(get_post_service),
):
    return svc.vote(post_id, payload, principal)

from fastapi import APIRouter, Depends, Response, status

from blazehub.api.dependencies import get_auth_service, get_client_ip_and_ua, get_settings
from blazehub.core.config import Settings
from blazehub.security.guard import Principal, guard
from blazehub.features.authentication.services import AuthService
from blazehub.features.authentication.schemas import (
    RegisterIn,
    RegisterOut,
    VerifyIn,
    SignInIn,
    SessionOut,
    ForgotPasswordIn,
    ResetPasswordIn,
    GitHubLinkIn,
    MessageOut,
    MeOut,
)

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
    responses={404: {"description": "Not Found"}},
)

# -----------------------------
# Inscription + vérification
# -----------------------------
@router.post(
    "/register",
    summary="Créer un compte (code de vérification envoyé par e-mail)",
    response_model=RegisterOut,
    responses={400: {"description": "E-mail déjà utilisé ou mot de passe trop faible"}},
)
def register(payload: RegisterIn, svc: AuthService = Depends(get_auth_service)):
    return svc.register(payload)


@router.post(
    "/verify",
    summary="Valider l'e-mail avec le code à 6 chiffres",
    response_model=MessageOut,
)
def verify(payload: VerifyIn, svc: AuthService = Depends(get_auth_service)):
    svc.verify_email(payload)
    return MessageOut(message="Email verified successfully")

# -----------------------------
# Sign-in / sign-out
# -----------------------------
@router.post(
    "/sign-in",
    summary="Se connecter",
    description="Retourne le jeton de session. Il est aussi posé en cookie httpOnly.",
    response_model=SessionOut,
    responses={
        401: {"description": "Identifiants invalides"},
        403: {"description": "E-mail non vérifié"},
    },
)
def sign_in(
    payload: SignInIn,
    response: Response,
    svc: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
    client_ctx=Depends(get_client_ip_and_ua),
):
    session = svc.sign_in(payload, client=client_ctx)
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=session.access_token,
        httponly=True,
        samesite=settings.AUTH_COOKIE_SAMESITE,
        secure=settings.AUTH_COOKIE_SECURE,
        max_age=settings.AUTH_COOKIE_MAX_AGE,
        path=settings.AUTH_COOKIE_PATH,
    )
    return session


@router.post(
    "/sign-out",
    summary="Se déconnecter (suppression du cookie de session)",
    status_code=status.HTTP_204_NO_CONTENT,
)
def sign_out(response: Response, settings: Settings = Depends(get_settings)):
    response.delete_cookie(key=settings.AUTH_COOKIE_NAME, path=settings.AUTH_COOKIE_PATH)
    return None

# -----------------------------
# Me (profil courant)
# -----------------------------
@router.get(
    "/me",
    summary="Récupérer l'utilisateur courant",
    response_model=MeOut,
    responses={401: {"description": "Session absente ou expirée"}},
)
def me(
    principal: Principal = Depends(guard("auth.me")),
    svc: AuthService = Depends(get_auth_service),
):
    return svc.get_me(principal)

# -----------------------------
# Mot de passe oublié / réinitialisation
# -----------------------------
@router.post(
    "/forgot-password",
    summary="Demander un lien de réinitialisation",
    response_model=MessageOut,
    responses={404: {"description": "Aucun compte pour cet e-mail"}},
)
def forgot_password(
    payload: ForgotPasswordIn,
    svc: AuthService = Depends(get_auth_service),
    client_ctx=Depends(get_client_ip_and_ua),
):
    svc.forgot_password(payload, client=client_ctx)
    return MessageOut(message="Password reset email sent")


@router.post(
    "/reset-password",
    summary="Choisir un nouveau mot de passe avec le jeton reçu",
    response_model=MessageOut,
    responses={400: {"description": "Jeton invalide ou expiré, mot de passe trop faible"}},
)
def reset_password(
    payload: ResetPasswordIn,
    svc: AuthService = Depends(get_auth_service),
    client_ctx=Depends(get_client_ip_and_ua),
):
    svc.reset_password(payload, client=client_ctx)
    return MessageOut(message="Password reset successfully")

# -----------------------------
# Compte GitHub
# -----------------------------
@router.post(
    "/github/link",
    summary="Lier un compte GitHub (jeton délégué)",
    status_code=status.HTTP_204_NO_CONTENT,
)
def link_github(
    payload: GitHubLinkIn,
    principal: Principal = Depends(guard("auth.github_link")),
    svc: AuthService = Depends(get_auth_service),
):
    svc.link_github(principal, payload)
    return None

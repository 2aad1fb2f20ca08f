import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from fastapi import HTTPException, status

from blazehub.db.models.base import utcnow
from blazehub.db.models.users import User
from blazehub.db.repositories.users import UserRepository, AccountRepository
from blazehub.db.repositories.password_reset_tokens import PasswordResetTokenRepository
from blazehub.db.repositories.security_audit_logs import SecurityAuditLogRepository
from blazehub.security import audit
from blazehub.security.audit import ClientContext, record_security_event
from blazehub.security.guard import GITHUB_PROVIDER, Principal
from blazehub.security.password import verify_password, hash_password
from blazehub.security.tokens import JWTSettings, create_session_token, generate_otp, generate_token
from blazehub.utils.email import EmailDeliveryError, Mailer
from blazehub.features.authentication.schemas import (
    RegisterIn,
    RegisterOut,
    RegisteredUserOut,
    VerifyIn,
    SignInIn,
    SessionOut,
    ForgotPasswordIn,
    ResetPasswordIn,
    GitHubLinkIn,
    MeOut,
)

logger = logging.getLogger(__name__)


class AuthService:
    """
    Service d'authentification : orchestre les repositories, les jetons et l'envoi d'e-mails.
    Ne contient pas d'accès SQL direct et lève des HTTPException propres.
    """

    def __init__(
        self,
        *,
        user_repo: UserRepository,
        account_repo: AccountRepository,
        reset_repo: PasswordResetTokenRepository,
        audit_repo: SecurityAuditLogRepository,
        mailer: Mailer,
        jwt_settings: JWTSettings,
        otp_ttl: timedelta = timedelta(minutes=10),
        reset_ttl: timedelta = timedelta(hours=24),
        now_fn: Callable[[], datetime] = utcnow,
    ):
        self.user_repo = user_repo
        self.account_repo = account_repo
        self.reset_repo = reset_repo
        self.audit_repo = audit_repo
        self.mailer = mailer
        self.jwt = jwt_settings
        self.otp_ttl = otp_ttl
        self.reset_ttl = reset_ttl
        self.now_fn = now_fn

    # ---------- Register ----------
    def register(self, payload: RegisterIn) -> RegisterOut:
        existing = self.user_repo.get_by_email(payload.email)
        if existing and existing.email_verified:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="An account with this email already exists",
            )

        if not self.mailer.configured:
            logger.error("Email service is not configured, registration refused")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Email service is not configured. Please contact support.",
            )

        # Compte non vérifié : on repart de zéro, dans la même transaction que la création
        if existing:
            logger.info("Replacing unverified account %s", existing.id)
            self.reset_repo.delete_for_user(existing.id, commit=False)
            self.account_repo.delete_for_user(existing.id, commit=False)
            self.user_repo.delete(existing, commit=False)

        otp = generate_otp()
        user = self.user_repo.create(
            commit=False,
            name=payload.name,
            email=payload.email,
            hashed_password=hash_password(payload.password),
            verification_code=otp,
            verification_expires=self.now_fn() + self.otp_ttl,
        )

        try:
            self.mailer.send_verification_email(
                user.email, user.name, otp, ttl_minutes=int(self.otp_ttl.total_seconds() // 60)
            )
        except EmailDeliveryError as e:
            logger.error("Verification email failed for %s: %s", payload.email, e)
            # ancien compte non vérifié conservé, nouveau compte abandonné
            self.user_repo.rollback()
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to send verification email. Please try again.",
            )

        self.user_repo.commit()
        return RegisterOut(user=RegisteredUserOut(name=payload.name, email=payload.email))

    # ---------- Vérification d'e-mail (OTP) ----------
    def verify_email(self, payload: VerifyIn) -> None:
        if not payload.email or not payload.otp:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields")

        user = self.user_repo.get_by_email(payload.email)
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        if user.email_verified:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already verified")
        if not user.verification_code or not user.verification_expires:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid verification code")
        if self.now_fn() > user.verification_expires:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Verification code has expired")
        if user.verification_code != payload.otp:
            logger.warning("Invalid OTP for user %s", user.id)
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid verification code")

        self.user_repo.update(
            user,
            email_verified=self.now_fn(),
            verification_code=None,
            verification_expires=None,
            updated_at=self.now_fn(),
        )

    # ---------- Sign in ----------
    def sign_in(self, payload: SignInIn, *, client: Optional[ClientContext] = None) -> SessionOut:
        user = self.user_repo.get_by_email(payload.email)
        if not user or not user.hashed_password:
            record_security_event(
                self.audit_repo, audit.LOGIN_ATTEMPT_USER_NOT_FOUND,
                details={"email": payload.email}, client=client,
            )
            # Ne pas révéler si l'utilisateur existe
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

        if not verify_password(payload.password, user.hashed_password):
            record_security_event(
                self.audit_repo, audit.LOGIN_ATTEMPT_INVALID_PASSWORD, user_id=user.id, client=client,
            )
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

        if not user.email_verified:
            record_security_event(self.audit_repo, audit.LOGIN_ATTEMPT_UNVERIFIED, user_id=user.id, client=client)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Please verify your email before logging in",
            )

        self.user_repo.update(user, last_login=self.now_fn())
        record_security_event(self.audit_repo, audit.LOGIN_SUCCESS, user_id=user.id, client=client)

        token = create_session_token(user_id=user.id, email=user.email, role=user.role.value, settings=self.jwt)
        return SessionOut(
            access_token=token,
            token_type="bearer",
            expires_in=int(self.jwt.session_ttl.total_seconds()),
        )

    # ---------- Current user ----------
    def get_me(self, principal: Principal) -> MeOut:
        user = self._get_user(principal.id)
        return MeOut(
            id=user.id,
            name=user.name,
            email=user.email,
            image=user.image,
            role=user.role,
            coin=user.coin,
            email_verified=user.email_verified,
            github_linked=principal.access_token is not None,
        )

    # ---------- Mot de passe oublié ----------
    def forgot_password(self, payload: ForgotPasswordIn, *, client: Optional[ClientContext] = None) -> None:
        user = self.user_repo.get_by_email(payload.email)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="No account found with this email address",
            )

        token = generate_token()
        self.reset_repo.create(token=token, user_id=user.id, expires=self.now_fn() + self.reset_ttl)
        record_security_event(self.audit_repo, audit.PASSWORD_RESET_REQUESTED, user_id=user.id, client=client)

        try:
            self.mailer.send_password_reset_email(user.email, token)
        except EmailDeliveryError as e:
            logger.error("Password reset email failed for user %s: %s", user.id, e)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to process request",
            )

    # ---------- Réinitialisation ----------
    def reset_password(self, payload: ResetPasswordIn, *, client: Optional[ClientContext] = None) -> None:
        record = self.reset_repo.get_by_token(payload.token)
        if not record:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired reset token")

        if record.expires < self.now_fn():
            self.reset_repo.delete(record)
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Reset token has expired")

        user = self.user_repo.get(record.user_id)
        if not user:
            self.reset_repo.delete(record)
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired reset token")

        # mot de passe + consommation du jeton dans la même transaction
        self.user_repo.update(
            user, commit=False, hashed_password=hash_password(payload.password), updated_at=self.now_fn()
        )
        self.reset_repo.delete(record, commit=False)
        self.reset_repo.commit()
        record_security_event(self.audit_repo, audit.PASSWORD_RESET_COMPLETED, user_id=user.id, client=client)

    # ---------- Compte GitHub lié ----------
    def link_github(self, principal: Principal, payload: GitHubLinkIn) -> None:
        account = self.account_repo.get_for_user(principal.id, GITHUB_PROVIDER)
        if account:
            self.account_repo.update(
                account,
                provider_account_id=payload.provider_account_id,
                access_token=payload.access_token,
                updated_at=self.now_fn(),
            )
            return
        self.account_repo.create(
            user_id=principal.id,
            provider=GITHUB_PROVIDER,
            provider_account_id=payload.provider_account_id,
            access_token=payload.access_token,
        )

    def _get_user(self, user_id: int) -> User:
        user = self.user_repo.get(user_id)
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        return user

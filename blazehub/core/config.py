"""
➡️ But : Centraliser tous les paramètres configurables (nom d'app, DB, secrets, stockage, e-mail...).

Utilise pydantic-settings pour charger automatiquement les variables d'environnement (.env, variables système…).

Aucune instance globale : create_app() construit un Settings et le range dans app.state,
les dépendances le relisent depuis la requête.

🔹 Avantages :

Plus propre que des constantes éparpillées dans le code.

Facilite le passage entre environnements (dev / prod / test) et les tests (settings injectés).
"""

from datetime import timedelta
from typing import List, Optional

from pydantic_settings import BaseSettings
from blazehub.security.tokens import JWTSettings


class Settings(BaseSettings):
    # -----------------------------
    # App
    # -----------------------------
    APP_NAME: str = "BlazeHub"
    ENV: str = "dev"  # dev | prod | test
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]
    APP_URL: str = "http://localhost:3000"  # front, pour les liens des e-mails

    # -----------------------------
    # DB
    # -----------------------------
    SQLITE_PATH: str = "blazehub.db"
    # Si tu veux forcer une URL différente (ex: Postgres), définis DATABASE_URL dans l'env.
    DATABASE_URL: Optional[str] = None

    # -----------------------------
    # Session (JWT signé)
    # -----------------------------
    JWT_SECRET_KEY: str = "CHANGE_ME"     # ⚠️ change en prod
    JWT_ISSUER: str = "blazehub"
    JWT_ALGORITHM: str = "HS256"
    SESSION_TTL_DAYS: int = 30

    AUTH_COOKIE_NAME: str = "session_token"
    AUTH_COOKIE_SAMESITE: str = "lax"     # "lax" | "strict" | "none"
    AUTH_COOKIE_PATH: str = "/"
    AUTH_COOKIE_SECURE: Optional[bool] = None   # auto selon ENV si None
    AUTH_COOKIE_MAX_AGE: Optional[int] = None   # auto depuis SESSION_TTL si None

    # -----------------------------
    # Codes / jetons à usage unique
    # -----------------------------
    PASSWORD_RESET_TTL_HOURS: int = 24
    OTP_TTL_MINUTES: int = 10

    # -----------------------------
    # Stockage fichiers
    # -----------------------------
    STORAGE_BACKEND: str = "local"  # local | s3 | supabase
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_MB: int = 50
    PRESIGN_TTL_SECONDS: int = 3600

    S3_ENDPOINT: Optional[str] = None     # None -> AWS
    S3_REGION: str = "us-east-1"
    S3_KEY: Optional[str] = None
    S3_SECRET: Optional[str] = None
    S3_BUCKET: str = "blazehub"

    SUPABASE_URL: Optional[str] = None
    SUPABASE_SERVICE_KEY: Optional[str] = None
    SUPABASE_BUCKET: str = "projects"

    # -----------------------------
    # E-mail (Resend)
    # -----------------------------
    RESEND_API_KEY: Optional[str] = None
    RESEND_API_URL: str = "https://api.resend.com"
    EMAIL_FROM: str = "BlazeHub <noreply@blazehub.dev>"

    # -----------------------------
    # GitHub
    # -----------------------------
    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_TOKEN: Optional[str] = None    # token serveur (accès repos privés des projets)
    GITHUB_USER_AGENT: str = "BlazeHub-App"

    # -----------------------------
    # Paiements (maquettes)
    # -----------------------------
    PAYMENTS_DEMO_MODE: bool = False

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }

    # -----------------------------
    # Post-process values
    # -----------------------------
    def model_post_init(self, __context): # appelée automatiquement
        # DATABASE_URL par défaut depuis SQLITE_PATH si non fourni
        if not self.DATABASE_URL:
            object.__setattr__(self, "DATABASE_URL", f"sqlite:///{self.SQLITE_PATH}")

        # Cookie secure auto: true en prod si non spécifié
        if self.AUTH_COOKIE_SECURE is None:
            object.__setattr__(self, "AUTH_COOKIE_SECURE", self.ENV == "prod")

        # max_age auto depuis SESSION_TTL
        if self.AUTH_COOKIE_MAX_AGE is None:
            max_age = self.SESSION_TTL_DAYS * 24 * 60 * 60
            object.__setattr__(self, "AUTH_COOKIE_MAX_AGE", max_age)

    @property
    def max_upload_bytes(self) -> int:
        return self.MAX_UPLOAD_MB * 1024 * 1024

    @property
    def jwt(self) -> JWTSettings:
        """Objet JWT prêt à l'emploi pour les services."""
        return JWTSettings(
            secret=self.JWT_SECRET_KEY,
            issuer=self.JWT_ISSUER,
            algorithm=self.JWT_ALGORITHM,
            session_ttl=timedelta(days=self.SESSION_TTL_DAYS),
        )

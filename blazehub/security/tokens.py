import secrets
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import PurePath
from typing import TypedDict

from jose import jwt, JWTError

# ==========================================================
# 🔧 Configuration : paramètres de génération/validation JWT
# ==========================================================

@dataclass(frozen=True)
class JWTSettings:
    """
    Configuration du jeton de session.

    - `secret` : clé secrète pour signer/valider les tokens
    - `issuer` : émetteur (utilisé dans le payload)
    - `algorithm` : algo de signature (HS256 recommandé)
    - `session_ttl` : durée de vie d'une session
    """
    secret: str
    issuer: str = "blazehub"
    algorithm: str = "HS256"
    session_ttl: timedelta = timedelta(days=30)


# ==========================================================
# 🧱 Types
# ==========================================================

class DecodedToken(TypedDict, total=False):
    iss: str
    sub: str            # identifiant utilisateur
    email: str
    role: str           # USER | ADMIN | SUPER_ADMIN
    typ: str            # "session"
    jti: str
    iat: int
    exp: int


# ==========================================================
# 🧩 Fonctions utilitaires
# ==========================================================

def _now() -> datetime:
    """Renvoie l'heure UTC actuelle."""
    return datetime.now(timezone.utc)


def generate_token() -> str:
    """
    Jeton opaque (reset de mot de passe, clés d'accès).
    32 octets aléatoires -> 64 caractères hexadécimaux minuscules.
    """
    return secrets.token_bytes(32).hex()


def generate_otp() -> str:
    """
    Code de vérification à 6 chiffres, complété par des zéros.

    ⚠️ 3 octets aléatoires réduits modulo 1 000 000 : 2^24 n'est pas un multiple
    de 10^6, les valeurs < 777 216 sortent un peu plus souvent. Conservé tel quel
    pour rester compatible avec les codes déjà envoyés.
    """
    value = int.from_bytes(secrets.token_bytes(3), "big") % 1_000_000
    return f"{value:06d}"


def generate_secure_file_name(original_name: str) -> str:
    """`<timestamp ms>-<16 octets hex><extension d'origine>`"""
    timestamp = int(time.time() * 1000)
    extension = PurePath(original_name).suffix
    return f"{timestamp}-{secrets.token_hex(16)}{extension}"


# ==========================================================
# 🎟️ Génération / décodage du jeton de session
# ==========================================================

def create_session_token(*, user_id: int, email: str, role: str, settings: JWTSettings) -> str:
    now = _now()
    payload: DecodedToken = {
        "iss": settings.issuer,
        "sub": str(user_id),
        "email": email,
        "role": role,
        "typ": "session",
        "jti": secrets.token_hex(16),
        "iat": int(now.timestamp()),
        "exp": int((now + settings.session_ttl).timestamp()),
    }
    return jwt.encode(payload, settings.secret, algorithm=settings.algorithm)


def decode_token(token: str, settings: JWTSettings) -> DecodedToken:
    """
    Décode et valide un token JWT (signature + expiration + émetteur).
    Lève JWTError en cas de signature invalide ou expirée.
    """
    decoded = jwt.decode(
        token,
        settings.secret,
        algorithms=[settings.algorithm],
        issuer=settings.issuer,
        options={"verify_aud": False},
    )
    if decoded.get("typ") != "session":
        raise JWTError("Invalid token type")
    return decoded  # type: ignore[return-value]

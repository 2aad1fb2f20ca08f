from blazehub.core.config import Settings
from blazehub.storage.base import StorageBackend
from blazehub.storage.local import LocalStorage
from blazehub.storage.s3 import S3Storage
from blazehub.storage.supabase import SupabaseStorage
from blazehub.utils.s3 import make_s3_client


def build_storage(settings: Settings) -> StorageBackend:
    """Un seul backend par processus, choisi par STORAGE_BACKEND."""
    backend = settings.STORAGE_BACKEND.lower()
    if backend == "local":
        return LocalStorage(settings.UPLOAD_DIR, max_bytes=settings.max_upload_bytes)
    if backend == "s3":
        return S3Storage(
            client_factory=lambda: make_s3_client(settings),
            bucket=settings.S3_BUCKET,
            presign_ttl=settings.PRESIGN_TTL_SECONDS,
        )
    if backend == "supabase":
        if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_KEY:
            raise RuntimeError("SUPABASE_URL and SUPABASE_SERVICE_KEY are required for the supabase backend")
        return SupabaseStorage.from_credentials(
            url=settings.SUPABASE_URL,
            service_key=settings.SUPABASE_SERVICE_KEY,
            bucket=settings.SUPABASE_BUCKET,
            presign_ttl=settings.PRESIGN_TTL_SECONDS,
        )
    raise RuntimeError(f"Unknown STORAGE_BACKEND: {settings.STORAGE_BACKEND}")

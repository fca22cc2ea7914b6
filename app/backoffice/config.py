import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str

    storage_backend: str
    storage_root: str
    s3_endpoint: str
    s3_region: str
    s3_bucket: str
    s3_access_key_id: str
    s3_secret_access_key: str

    jwt_secret: str
    jwt_expiration_seconds: int

    img_prefix_client_profile: str
    img_profile_size: int

    mail_backend: str
    mail_sender: str
    smtp_host: str
    smtp_port: int
    smtp_username: str
    smtp_password: str
    smtp_use_tls: bool


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getenv_int(name: str, default: int) -> int:
    raw = _getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer (got {raw!r}).")


def _getenv_bool(name: str, default: bool) -> bool:
    raw = _getenv(name).lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///backoffice.db"),
        storage_backend=_getenv("STORAGE_BACKEND", "local"),
        storage_root=_getenv("STORAGE_ROOT", ""),
        s3_endpoint=_getenv("S3_ENDPOINT", ""),
        s3_region=_getenv("S3_REGION", "sa-east-1"),
        s3_bucket=_getenv("S3_BUCKET", ""),
        s3_access_key_id=_getenv("S3_ACCESS_KEY_ID", ""),
        s3_secret_access_key=_getenv("S3_SECRET_ACCESS_KEY", ""),
        jwt_secret=_getenv("JWT_SECRET", "change-me"),
        jwt_expiration_seconds=_getenv_int("JWT_EXPIRATION_SECONDS", 86400),
        img_prefix_client_profile=_getenv("IMG_PREFIX_CLIENT_PROFILE", "cp"),
        img_profile_size=_getenv_int("IMG_PROFILE_SIZE", 200),
        mail_backend=_getenv("MAIL_BACKEND", "log"),
        mail_sender=_getenv("MAIL_SENDER", "no-reply@backoffice.local"),
        smtp_host=_getenv("SMTP_HOST", "localhost"),
        smtp_port=_getenv_int("SMTP_PORT", 587),
        smtp_username=_getenv("SMTP_USERNAME", ""),
        smtp_password=_getenv("SMTP_PASSWORD", ""),
        smtp_use_tls=_getenv_bool("SMTP_USE_TLS", True),
    )


def load_config() -> dict:
    s = load_settings()
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "STORAGE_BACKEND": s.storage_backend,
        "STORAGE_ROOT": s.storage_root,
        "S3_ENDPOINT": s.s3_endpoint,
        "S3_REGION": s.s3_region,
        "S3_BUCKET": s.s3_bucket,
        "S3_ACCESS_KEY_ID": s.s3_access_key_id,
        "S3_SECRET_ACCESS_KEY": s.s3_secret_access_key,
        "JWT_SECRET": s.jwt_secret,
        "JWT_EXPIRATION_SECONDS": s.jwt_expiration_seconds,
        "IMG_PREFIX_CLIENT_PROFILE": s.img_prefix_client_profile,
        "IMG_PROFILE_SIZE": s.img_profile_size,
        "MAIL_BACKEND": s.mail_backend,
        "MAIL_SENDER": s.mail_sender,
        "SMTP_HOST": s.smtp_host,
        "SMTP_PORT": s.smtp_port,
        "SMTP_USERNAME": s.smtp_username,
        "SMTP_PASSWORD": s.smtp_password,
        "SMTP_USE_TLS": s.smtp_use_tls,
        # profile pictures only; 10MB is plenty
        "MAX_CONTENT_LENGTH": 10 * 1024 * 1024,
    }

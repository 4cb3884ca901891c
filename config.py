import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


def _bool_env(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def engine_options(database_uri: str, timeout_seconds: float) -> dict:
    """Bound every database call: SQLite busy timeout, PostgreSQL statement timeout."""
    if database_uri.startswith("sqlite"):
        return {"connect_args": {"timeout": timeout_seconds, "check_same_thread": False}}
    if database_uri.startswith("postgresql"):
        return {
            "pool_pre_ping": True,
            "connect_args": {"options": f"-c statement_timeout={int(timeout_seconds * 1000)}"},
        }
    return {"pool_pre_ping": True}


class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to the app as interviewsync.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "interviewsync.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Upper bound for any single database call (lock wait / statement)
    DB_TIMEOUT_SECONDS = float(os.getenv("DB_TIMEOUT_SECONDS", "5"))
    SQLALCHEMY_ENGINE_OPTIONS = engine_options(SQLALCHEMY_DATABASE_URI, DB_TIMEOUT_SECONDS)

    # 8 hours bearer-token lifetime
    SESSION_LIFETIME_SECONDS = int(os.getenv("SESSION_LIFETIME_SECONDS", str(8 * 60 * 60)))

    # Idle timeout: 20 minutes
    IDLE_TIMEOUT_SECONDS = int(os.getenv("IDLE_TIMEOUT_SECONDS", str(20 * 60)))

    # bcrypt work factor
    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

    # Listing
    DEFAULT_PAGE_SIZE = 10
    MAX_PAGE_SIZE = 100

    # Interviews
    VIDEO_LINK_BASE_URL = os.getenv("VIDEO_LINK_BASE_URL", "https://meet.jit.si")

    # Notifications: best effort, sent from a small worker pool after commit
    NOTIFY_ASYNC = _bool_env("NOTIFY_ASYNC", "true")
    NOTIFY_WORKERS = int(os.getenv("NOTIFY_WORKERS", "2"))

    # Email (SMTP)
    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
    SMTP_FROM_EMAIL = os.getenv("SMTP_FROM_EMAIL", "noreply@interviewsync.local")
    SMTP_USE_TLS = _bool_env("SMTP_USE_TLS", "true")
    SMTP_TIMEOUT_SECONDS = int(os.getenv("SMTP_TIMEOUT_SECONDS", "10"))

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Basic app settings
    DEBUG = False

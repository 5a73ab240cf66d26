import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    v = raw.strip().lower()
    if v in ("1", "true", "yes", "y", "on"):
        return True
    if v in ("0", "false", "no", "n", "off"):
        return False
    return default


@dataclass(frozen=True)
class Config:
    """Runtime configuration, read from the environment (or a local .env file)."""

    DATABASE_URL: str
    DB_SSLMODE: str = "require"

    HOST: str = "0.0.0.0"
    PORT: int = 5000

    SESSION_SECRET: str = "bb_secret"
    SESSION_TTL_HOURS: float = 8
    SESSION_SWEEP_SECONDS: int = 300

    # "pbkdf2_sha256" (default) or "legacy_sha256"
    PASSWORD_SCHEME: str = "pbkdf2_sha256"

    LEGACY_USERS_PATH: str = "./users.json"
    LEGACY_RECORDS_PATH: str = "./data.json"

    STATIC_DIR: str = "public"
    CORS_ORIGINS: tuple = ("*",)

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    @property
    def session_ttl_seconds(self) -> float:
        return float(self.SESSION_TTL_HOURS) * 60 * 60


def load_config() -> Config:
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        raise RuntimeError("DATABASE_URL environment variable is missing")

    origins = os.getenv("CORS_ORIGINS", "*")
    return Config(
        DATABASE_URL=database_url,
        DB_SSLMODE=os.getenv("DB_SSLMODE", "require"),
        HOST=os.getenv("HOST", "0.0.0.0"),
        PORT=int(os.getenv("PORT") or 5000),
        SESSION_SECRET=os.getenv("SESSION_SECRET", "bb_secret"),
        SESSION_TTL_HOURS=float(os.getenv("SESSION_TTL_HOURS", "8")),
        SESSION_SWEEP_SECONDS=int(os.getenv("SESSION_SWEEP_SECONDS", "300")),
        PASSWORD_SCHEME=os.getenv("PASSWORD_SCHEME", "pbkdf2_sha256"),
        LEGACY_USERS_PATH=os.getenv("LEGACY_USERS_PATH", "./users.json"),
        LEGACY_RECORDS_PATH=os.getenv("LEGACY_RECORDS_PATH", "./data.json"),
        STATIC_DIR=os.getenv("STATIC_DIR", "public"),
        CORS_ORIGINS=tuple(o.strip() for o in origins.split(",") if o.strip()),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
        LOG_JSON=_env_bool("LOG_JSON", True),
    )


@lru_cache
def get_config() -> Config:
    return load_config()

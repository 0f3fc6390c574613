from __future__ import annotations
from dataclasses import dataclass
from dotenv import load_dotenv
from pathlib import Path
import os

load_dotenv()

# === Режим приложения ===
# - APP_ENV=prod  → PostgreSQL
# - APP_ENV=test  → JSON-файл в PROMO_DATA_DIR
APP_ENV = (os.getenv("APP_ENV") or "test").strip().lower()
IS_PROD = APP_ENV == "prod"

BASE_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = Path(os.getenv("PROMO_DATA_DIR") or BASE_DIR / "data")

CURRENCY = (os.getenv("CURRENCY") or "FCFA").strip()
LOG_LEVEL = (os.getenv("LOG_LEVEL") or "INFO").strip().upper()


def _env_int(name: str, *, required: bool = False, default: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        if required:
            raise RuntimeError(f"{name} is not set")
        return default
    try:
        return int(raw)
    except Exception as e:
        if required:
            raise RuntimeError(f"{name} must be an integer") from e
        return default


@dataclass(frozen=True)
class PgConfig:
    host: str
    port: int
    database: str
    user: str
    password: str
    sslmode: str = "disable"


def load_pg_config() -> PgConfig:
    values = {}
    for name in ("PG_HOST", "PG_DB", "PG_USER", "PG_PASS"):
        value = os.getenv(name)
        if not value:
            raise RuntimeError(f"{name} is not set")
        values[name] = value

    return PgConfig(
        host=values["PG_HOST"],
        port=_env_int("PG_PORT", default=5432),
        database=values["PG_DB"],
        user=values["PG_USER"],
        password=values["PG_PASS"],
        sslmode=os.getenv("PG_SSLMODE", "disable"),
    )

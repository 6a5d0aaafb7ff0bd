import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()


def _split(value: str) -> list:
    return [item.strip() for item in value.split(",") if item.strip()]


class Config:
    # --- 1. THE LOCK (Protects THIS service) ---
    SERVICE_KEY: str = os.getenv("ZALO_BRIDGE_SERVICE_KEY", "")

    # --- 2. SESSION SIDECAR (zca-js worker holding the Zalo login) ---
    ZALO_API_URL: str = os.getenv("ZALO_API_URL", "http://localhost:3005")
    ZALO_API_KEY: str = os.getenv("ZALO_API_KEY", "")
    ZALO_TIMEOUT: float = float(os.getenv("ZALO_TIMEOUT", "30"))
    ZALO_SEND_TIMEOUT: float = float(os.getenv("ZALO_SEND_TIMEOUT", "30"))

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8086"))
    ROUTE_PREFIX: str = os.getenv("ROUTE_PREFIX", "")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS: list = _split(os.getenv("CORS_ORIGINS", "*"))

    # Local Database
    SQLITE_DB_PATH: str = os.getenv("SQLITE_DB_PATH", "./data/zalo.db")

    # Avatar proxy
    AVATAR_ALLOWED_PREFIXES: list = _split(os.getenv(
        "AVATAR_ALLOWED_PREFIXES",
        "https://ava-grp-talk.zadn.vn/,https://s120-ava-talk.zadn.vn/,https://avatar-talk.zadn.vn/",
    ))

    @classmethod
    def ensure_data_dir(cls) -> None:
        db_path = Path(cls.SQLITE_DB_PATH)
        db_path.parent.mkdir(parents=True, exist_ok=True)

config = Config()

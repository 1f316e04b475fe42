# backend/geomeasure/config.py
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _default_database_url() -> str:
    # コンテナでは /app/data、ローカルでは <repo root>/data に SQLite を置く
    container_data = Path("/app/data")
    if container_data.exists():
        db_path = container_data / "measurements.db"
    else:
        # backend/geomeasure/config.py → ../../.. = <repo root>
        repo_root = Path(__file__).resolve().parents[2]
        db_path = repo_root / "data" / "measurements.db"
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{db_path}"


class Settings:
    """Environment driven settings for the API server and the client."""

    DATABASE_URL: str = os.getenv("DATABASE_URL") or _default_database_url()
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "3000"))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "console")

    API_BASE_URL: str = os.getenv("API_BASE_URL", "http://localhost:3000/api")


settings = Settings()

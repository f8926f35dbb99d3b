# app/config.py
import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
project_root = Path(__file__).parent.parent
load_dotenv(project_root / ".env")


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


class Settings:
    HOME_CURRENCY = os.getenv("NDF_HOME_CURRENCY", "BRL").upper()
    LOG_LEVEL = os.getenv("NDF_LOG_LEVEL", "INFO").upper()
    MAX_UPLOAD_MB = _float_env("NDF_MAX_UPLOAD_MB", 20.0)  # wizard advertises 20MB
    CSV_ENCODING = os.getenv("NDF_CSV_ENCODING", "utf-8-sig")
    PREVIEW_ROWS = int(_float_env("NDF_PREVIEW_ROWS", 5))

    @property
    def max_upload_bytes(self) -> int:
        return int(self.MAX_UPLOAD_MB * 1024 * 1024)


settings = Settings()

# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Core configuration — all env-driven, zero hardcode.
Single source of truth for every tunable parameter.
"""

import os


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Settings:
    """Application settings loaded from environment variables."""

    SERVICE_NAME: str = os.getenv("SERVICE_NAME", "kutu-service")
    SERVICE_VERSION: str = os.getenv("SERVICE_VERSION", "1.0.0")
    SERVICE_PORT: int = int(os.getenv("SERVICE_PORT", "8010"))

    # Empty path keeps groups in process memory only.
    STORE_PATH: str = os.getenv("STORE_PATH", "")
    SEED_DEFAULT_GROUPS: bool = _flag("SEED_DEFAULT_GROUPS", "true")

    RANDOMIZE_PAYOUT_ORDER: bool = _flag("RANDOMIZE_PAYOUT_ORDER", "false")
    STRICT_PAYOUT_ORDER: bool = _flag("STRICT_PAYOUT_ORDER", "false")
    RESET_REQUIRES_COMPLETED: bool = _flag("RESET_REQUIRES_COMPLETED", "true")

    TIP_SERVICE_URL: str = os.getenv("TIP_SERVICE_URL", "")
    TIP_TIMEOUT: float = float(os.getenv("TIP_TIMEOUT", "3.0"))

    DEFAULT_HISTORY_LIMIT: int = int(os.getenv("DEFAULT_HISTORY_LIMIT", "100"))
    MAX_HISTORY_SIZE: int = int(os.getenv("MAX_HISTORY_SIZE", "10000"))

    CORS_ORIGINS: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()

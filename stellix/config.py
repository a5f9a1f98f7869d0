"""Application configuration.

Single source of truth for all configuration values.
Loads from environment variables with .env file support.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Application version
VERSION = "2.0.0"

# Load .env file from project root
_PROJECT_ROOT = Path(__file__).parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"
load_dotenv(_ENV_FILE)

URL_POLICIES = ("exact", "casefold")


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def _env_url_policy() -> str:
    policy = os.getenv("URL_MATCH_POLICY", "exact").strip().lower()
    if policy not in URL_POLICIES:
        logger.warning("Unknown URL_MATCH_POLICY %r, using 'exact'", policy)
        return "exact"
    return policy


class Config:
    """Application configuration singleton.

    All configuration values should be accessed through this class.
    Values are loaded from environment variables with sensible defaults.
    """

    # Storage
    DATABASE_PATH: str = os.getenv("DATABASE_PATH", str(_PROJECT_ROOT / "data" / "stellix.db"))
    QUOTA_STATS_PATH: str = os.getenv(
        "QUOTA_STATS_PATH", str(_PROJECT_ROOT / "data" / "quota_stats.json")
    )

    # Aggregate catalog
    CATALOG_CACHE_TTL_SECONDS: int = _env_int("CATALOG_CACHE_TTL_SECONDS", 300)
    CATALOG_CHUNK_THRESHOLD_BYTES: int = _env_int("CATALOG_CHUNK_THRESHOLD_BYTES", 900_000)

    # Deduplication
    URL_MATCH_POLICY: str = _env_url_policy()

    # Health check
    HEALTH_BATCH_SIZE: int = _env_int("HEALTH_BATCH_SIZE", 5)
    HEALTH_BATCH_DELAY_SECONDS: float = _env_float("HEALTH_BATCH_DELAY_SECONDS", 0.3)
    PROBE_TIMEOUT_SECONDS: float = _env_float("PROBE_TIMEOUT_SECONDS", 5.0)

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_DIR: str = os.getenv("LOG_DIR", str(_PROJECT_ROOT / "data" / "logs"))

    # API
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = _env_int("API_PORT", 8000)

    @classmethod
    def reload(cls) -> None:
        """Reload configuration from environment.

        Useful for testing or runtime config changes.
        """
        load_dotenv(_ENV_FILE, override=True)
        cls.DATABASE_PATH = os.getenv("DATABASE_PATH", str(_PROJECT_ROOT / "data" / "stellix.db"))
        cls.QUOTA_STATS_PATH = os.getenv(
            "QUOTA_STATS_PATH", str(_PROJECT_ROOT / "data" / "quota_stats.json")
        )
        cls.CATALOG_CACHE_TTL_SECONDS = _env_int("CATALOG_CACHE_TTL_SECONDS", 300)
        cls.CATALOG_CHUNK_THRESHOLD_BYTES = _env_int("CATALOG_CHUNK_THRESHOLD_BYTES", 900_000)
        cls.URL_MATCH_POLICY = _env_url_policy()
        cls.HEALTH_BATCH_SIZE = _env_int("HEALTH_BATCH_SIZE", 5)
        cls.HEALTH_BATCH_DELAY_SECONDS = _env_float("HEALTH_BATCH_DELAY_SECONDS", 0.3)
        cls.PROBE_TIMEOUT_SECONDS = _env_float("PROBE_TIMEOUT_SECONDS", 5.0)
        cls.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
        cls.LOG_DIR = os.getenv("LOG_DIR", str(_PROJECT_ROOT / "data" / "logs"))

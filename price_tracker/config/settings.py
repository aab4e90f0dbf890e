# price_tracker/config/settings.py

"""Central configuration for the price tracker."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean flag; only the literal ``"true"`` enables it."""
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() == "true"


def _env_list(name: str, default: list[str]) -> list[str]:
    """Read a comma-separated list, falling back to *default*."""
    raw = os.getenv(name)
    if not raw:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings:
    """Central configuration for the price tracker."""

    # --- Extraction service ---
    FIRECRAWL_API_KEY: str = os.getenv("FIRECRAWL_API_KEY", "")
    FIRECRAWL_API_URL: str = os.getenv(
        "FIRECRAWL_API_URL", "https://api.firecrawl.dev/v1/scrape"
    )
    REQUEST_TIMEOUT: int = 60           # Seconds before a request times out
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"

    # --- Scheduling ---
    SHOULD_SCHEDULE: bool = _env_flag("SHOULD_SCHEDULE")
    CHECK_CRON: str = os.getenv("CHECK_CRON", "0 */12 * * *")

    # --- Tracking ---
    DEFAULT_CURRENCY: str = "USD"
    RECENT_OBSERVATIONS: int = 3        # Prices preloaded per tracked URL
    SEED_URLS: list[str] = _env_list(
        "TRACKED_URLS",
        [
            "https://www.zara.com/in/en/geometric-crochet-shirt-p07200330.html"
            "?v1=364096376&v2=2439352",
            "https://www2.hm.com/en_in/productpage.1227157004.html",
        ],
    )

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    LOGS_DIR: Path = BASE_DIR / "logs"
    DATA_DIR: Path = BASE_DIR / "data"
    LOG_MAX_BYTES: int = 1_000_000     # Rotate the scheduler log at ~1 MB
    LOG_BACKUP_COUNT: int = 5
    PRICE_DB_PATH: Path = Path(
        os.getenv("PRICE_DB_PATH", str(DATA_DIR / "prices.db"))
    )

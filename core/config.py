"""
Configuration loader for VendorSync.
Loads environment variables from .env file into an explicit Config object.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from dotenv import load_dotenv


# Load .env from the project root
PROJECT_ROOT = Path(__file__).parent.parent
ENV_PATH = PROJECT_ROOT / ".env"
load_dotenv(ENV_PATH)


def _env(name: str, default: str) -> str:
    return os.getenv(name, default)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Config:
    """
    Application configuration.

    Defaults are read from the environment when the object is built, so
    tests can construct one with explicit overrides:

        config = Config(SYNC_TO_DB=False, VENDOR_FETCH_RETRIES=2)
    """
    MONGO_URI: str = field(default_factory=lambda: _env("MONGO_URI", "mongodb://localhost:27017/vendorsync"))
    DATABASE_NAME: str = field(default_factory=lambda: _env("DATABASE_NAME", "vendorsync"))

    # Vendor feeds
    VENDOR_API_BASE_URL: str = field(default_factory=lambda: _env("VENDOR_API_BASE_URL", "https://api.example-vendor.com"))
    VENDOR_FETCH_TIMEOUT: float = field(default_factory=lambda: float(_env("VENDOR_FETCH_TIMEOUT", "30")))
    VENDOR_FETCH_RETRIES: int = field(default_factory=lambda: int(_env("VENDOR_FETCH_RETRIES", "0")))
    VENDOR_FETCH_RETRY_DELAY: float = field(default_factory=lambda: float(_env("VENDOR_FETCH_RETRY_DELAY", "2")))

    # Reconciliation behaviour
    SYNC_TO_DB: bool = field(default_factory=lambda: _env_bool("SYNC_TO_DB", "true"))
    DEDUPE_UNIT_IDS: bool = field(default_factory=lambda: _env_bool("DEDUPE_UNIT_IDS", "false"))

    # Collections
    VENDOR_APIS_COLLECTION: str = field(default_factory=lambda: _env("VENDOR_APIS_COLLECTION", "vendor_apis"))
    VENDOR_PRODUCTS_COLLECTION: str = field(default_factory=lambda: _env("VENDOR_PRODUCTS_COLLECTION", "vendor_products"))
    PRODUCTS_COLLECTION: str = field(default_factory=lambda: _env("PRODUCTS_COLLECTION", "canonical_products"))
    CONDITIONS_COLLECTION: str = field(default_factory=lambda: _env("CONDITIONS_COLLECTION", "conditions"))


def load_config() -> Config:
    """Build a Config from the current environment."""
    return Config()

"""
Configuration module for the F1 Jolpica client.
Loads environment variables and defines resource specifications.
"""

import logging
import os
from typing import TypedDict

from dotenv import find_dotenv, load_dotenv

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# --- ENV LOADING ---
_env_found = load_dotenv(find_dotenv())
if not _env_found:
    logger.info("ℹ️  No .env file found. Using environment variables from system.")


def get_env_optional_int(key: str) -> int | None:
    """
    Read an integer environment variable that may be left unset.

    Args:
        key: Environment variable name

    Returns:
        The parsed integer, or None when the variable is unset or empty
    """
    value = os.getenv(key, "")
    return int(value) if value.strip() else None


# --- 1. API CONFIGURATION (Ergast via Jolpica) ---
BASE_URL: str = os.getenv("API_BASE_URL", "https://api.jolpi.ca/ergast/f1")
REQUEST_TIMEOUT: int = int(os.getenv("API_TIMEOUT", "30"))

# A locally hosted jolpica-f1 server has no rate limit to respect
LOCAL_BASE_URL: str = os.getenv("LOCAL_API_BASE_URL", "http://localhost:8000/ergast/f1")
USE_LOCAL_API: bool = os.getenv("LOCAL_JOLPICA", "").lower() in ("1", "true", "yes")

# Pagination
DEFAULT_PAGE_LIMIT: int = int(os.getenv("API_PAGE_LIMIT", "30"))
MAX_PAGE_LIMIT: int = int(os.getenv("API_MAX_PAGE_LIMIT", "100"))
MAX_PAGE_COUNT: int | None = get_env_optional_int("MAX_PAGE_COUNT")

# Rate Limiting: burst of 4 requests, sustained 500 requests per hour
RATE_LIMIT_BURST: int = int(os.getenv("API_RATE_LIMIT_BURST", "4"))
RATE_LIMIT_QUOTA: int = int(os.getenv("API_RATE_LIMIT_QUOTA", "500"))
RATE_LIMIT_WINDOW: float = float(os.getenv("API_RATE_LIMIT_WINDOW", "3600"))

DEFAULT_HEADERS: dict[str, str] = {
    "User-Agent": "F1-Jolpica-Client/1.0",
    "Accept": "application/json",
}

# --- 2. RETRY STRATEGY CONFIGURATION ---
# Retries on top of the first attempt, for transport failures only
HTTP_RETRIES: int = int(os.getenv("HTTP_RETRIES", "2"))
RETRY_WAIT: float = float(os.getenv("RETRY_WAIT", "1.0"))
# Retries performed inside the HTTP adapter for 429/5xx responses
HTTP_STATUS_RETRIES: int = int(os.getenv("HTTP_STATUS_RETRIES", "2"))

# --- 3. RESOURCE STRATEGY ---


class ResourceConfig(TypedDict):
    """Type-safe shape for a single resource entry in RESOURCE_CONFIG."""

    path_key: str
    table: str


RESOURCE_CONFIG: dict[str, ResourceConfig] = {
    # --- Reference Data ---
    "seasons": {"path_key": "/seasons", "table": "SeasonTable"},
    "drivers": {"path_key": "/drivers", "table": "DriverTable"},
    "constructors": {"path_key": "/constructors", "table": "ConstructorTable"},
    "circuits": {"path_key": "/circuits", "table": "CircuitTable"},
    "status": {"path_key": "/status", "table": "StatusTable"},
    # --- Race Level Data ---
    "races": {"path_key": "/races", "table": "RaceTable"},
    "qualifying": {"path_key": "/qualifying", "table": "RaceTable"},
    "sprint": {"path_key": "/sprint", "table": "RaceTable"},
    "results": {"path_key": "/results", "table": "RaceTable"},
    "laps": {"path_key": "/laps", "table": "RaceTable"},
    "pitstops": {"path_key": "/pitstops", "table": "RaceTable"},
}


# --- 4. CONFIGURATION VALIDATION ---
def validate_configuration() -> bool:
    """
    Validate that all critical configuration is present and coherent.

    Returns:
        True if validation passes

    Raises:
        ConfigurationError: If validation fails
    """
    errors = []

    if not BASE_URL:
        errors.append("API_BASE_URL is not set")

    if not 0 < DEFAULT_PAGE_LIMIT <= MAX_PAGE_LIMIT:
        errors.append(
            f"API_PAGE_LIMIT must be between 1 and {MAX_PAGE_LIMIT}, got {DEFAULT_PAGE_LIMIT}"
        )

    if RATE_LIMIT_BURST < 1 or RATE_LIMIT_QUOTA < 1 or RATE_LIMIT_WINDOW <= 0:
        errors.append("Rate limit burst, quota and window must all be positive")

    if HTTP_RETRIES < 0:
        errors.append("HTTP_RETRIES must not be negative")

    if MAX_PAGE_COUNT is not None and MAX_PAGE_COUNT < 1:
        errors.append("MAX_PAGE_COUNT must be at least 1 when set")

    if not RESOURCE_CONFIG:
        errors.append("RESOURCE_CONFIG is empty")

    for resource_name, config in RESOURCE_CONFIG.items():
        if not config.get("path_key"):
            errors.append(f"Resource '{resource_name}' missing path_key")
        if not config.get("table"):
            errors.append(f"Resource '{resource_name}' missing table")

    if errors:
        logger.error("❌ Configuration validation failed:")
        for error in errors:
            logger.error(f"   - {error}")
        raise ConfigurationError("; ".join(errors))

    logger.info("✅ Configuration validation passed")
    return True

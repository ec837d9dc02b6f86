# ============================================================================
# CLAUDE CONTEXT - STAC API CONFIGURATION
# ============================================================================
# STATUS: Standalone Configuration - STAC API
# PURPOSE: Environment-based configuration for the STAC API module
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: STACAPIConfig, get_stac_config, reset_stac_config
# DEPENDENCIES: pydantic, os
# SOURCE: Environment variables
# ============================================================================

"""
STAC API Configuration

Environment-based configuration for the STAC API module. The core
(ResponseAssembler, STACAPIService) receives an instance at construction and
never reads the environment itself; only the HTTP triggers use the cached
singleton.

Environment Variables:
    Optional:
    - STAC_ID: Catalog identifier (default: "stac-server")
    - STAC_TITLE: Catalog title (default: "A STAC API")
    - STAC_DESCRIPTION: Catalog description (default: "A STAC API running on stac-server")
    - STAC_VERSION: STAC version reported in documents (default: "1.0.0")
    - STAC_DOCS_URL: External documentation URL, adds a `server` link
    - STAC_SERVER_COLLECTION_LIMIT: Collections fetched for listings (default: 100)
    - ENABLE_TRANSACTIONS_EXTENSION: "true" enables create/update/delete routes
    - STAC_BASE_URL: Public base URL for links (default: auto-detect)
    - STAC_THUMBNAIL_EXPIRY_SECONDS: Lifetime of signed thumbnail URLs (default: 300)
"""

import os
from typing import Optional
from pydantic import BaseModel, Field


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("true", "1", "yes")


class STACAPIConfig(BaseModel):
    """STAC API module configuration - fully configurable via environment variables."""

    catalog_id: str = Field(
        default_factory=lambda: os.getenv("STAC_ID", "stac-server"),
        description="STAC catalog ID"
    )

    catalog_title: str = Field(
        default_factory=lambda: os.getenv("STAC_TITLE", "A STAC API"),
        description="Human-readable catalog title"
    )

    catalog_description: str = Field(
        default_factory=lambda: os.getenv(
            "STAC_DESCRIPTION",
            "A STAC API running on stac-server"
        ),
        description="Catalog description"
    )

    stac_version: str = Field(
        default_factory=lambda: os.getenv("STAC_VERSION", "1.0.0"),
        description="STAC specification version"
    )

    docs_url: Optional[str] = Field(
        default_factory=lambda: os.getenv("STAC_DOCS_URL") or None,
        description="External API documentation (adds a `server` link to the catalog)"
    )

    collection_limit: int = Field(
        default_factory=lambda: int(os.getenv("STAC_SERVER_COLLECTION_LIMIT", "100")),
        ge=1,
        description="Collections fetched for the catalog and collections listing"
    )

    enable_transactions: bool = Field(
        default_factory=lambda: _env_flag("ENABLE_TRANSACTIONS_EXTENSION"),
        description="Enable the Transaction extension endpoints"
    )

    stac_base_url: Optional[str] = Field(
        default_factory=lambda: os.getenv("STAC_BASE_URL"),
        description="Base URL for STAC API (auto-detected if None)"
    )

    thumbnail_url_expiry_seconds: int = Field(
        default_factory=lambda: int(os.getenv("STAC_THUMBNAIL_EXPIRY_SECONDS", "300")),
        ge=1,
        description="Lifetime of signed thumbnail URLs"
    )


# Singleton instance cache
_stac_config_cache: Optional[STACAPIConfig] = None


def get_stac_config() -> STACAPIConfig:
    """
    Get STAC API configuration (singleton pattern).

    Returns:
        Cached configuration instance
    """
    global _stac_config_cache

    if _stac_config_cache is None:
        _stac_config_cache = STACAPIConfig()

    return _stac_config_cache


def reset_stac_config() -> None:
    """Drop the cached configuration (tests change the environment)."""
    global _stac_config_cache
    _stac_config_cache = None

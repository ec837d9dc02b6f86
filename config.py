# ============================================================================
# CLAUDE CONTEXT - APPLICATION CONFIGURATION
# ============================================================================
# STATUS: Core Infrastructure - Configuration Management
# PURPOSE: Application settings for the backend binding and blob storage access
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: AppConfig, get_app_config, validate_configuration
# DEPENDENCIES: pydantic-settings
# SOURCE: Environment variables, .env file
# PATTERNS: Singleton pattern for config
# ============================================================================

"""
Application Configuration Module

Settings that belong to the hosting application rather than the STAC API
module itself:

- STAC_BACKEND: dotted "module:factory" path of the search backend. The factory
  is called with no arguments and must return an object implementing
  stac_api.backend.Backend. When unset, STAC endpoints answer 503.
- STORAGE_ACCOUNT_NAME: Azure Storage account holding `az://` thumbnail assets.
- USE_MANAGED_IDENTITY: authenticate to storage with a managed identity
  (user-assigned when MANAGED_IDENTITY_CLIENT_ID is set). When false, only
  environment and Azure CLI credentials are tried.

Usage:
    from config import get_app_config

    config = get_app_config()
    if config.stac_backend:
        ...
"""

import logging
from typing import Optional
from functools import lru_cache

from pydantic_settings import BaseSettings
from pydantic import Field, validator

logger = logging.getLogger(__name__)

# ============================================================================
# Application Configuration
# ============================================================================

class AppConfig(BaseSettings):
    """
    Application-wide configuration loaded from environment variables.

    Attributes:
        stac_backend: Backend factory path ("package.module:factory")
        storage_account_name: Storage account for thumbnail signing
        use_managed_identity: Enable Azure managed identity authentication
        managed_identity_client_id: User-assigned identity for storage access
    """

    # Search backend binding
    stac_backend: Optional[str] = Field(
        default=None,
        description="Backend factory as 'module:callable'"
    )

    # Blob storage (thumbnails)
    storage_account_name: Optional[str] = Field(
        default=None,
        description="Azure Storage account name for az:// asset hrefs"
    )

    # Authentication Mode
    use_managed_identity: bool = Field(
        default=True,
        description="Use Azure managed identity for storage authentication"
    )

    managed_identity_client_id: Optional[str] = Field(
        default=None,
        description="Client id of a user-assigned managed identity (system identity if unset)"
    )

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"

    @validator('stac_backend')
    def validate_backend_path(cls, v):
        """Backend path must name a module and an attribute."""
        if v is None or not v.strip():
            return None
        module_name, _, attr = v.strip().partition(":")
        if not module_name or not attr:
            raise ValueError(
                "STAC_BACKEND must look like 'package.module:factory'"
            )
        return v.strip()


@lru_cache(maxsize=1)
def get_app_config() -> AppConfig:
    """
    Get singleton application configuration instance.

    Returns:
        AppConfig: Validated configuration object

    Raises:
        ValidationError: If an environment variable is malformed
    """
    return AppConfig()


# ============================================================================
# Configuration Validation
# ============================================================================

def validate_configuration() -> bool:
    """
    Validate configuration on application startup.

    Returns:
        bool: True if configuration is valid

    Raises:
        Exception: If configuration validation fails
    """
    try:
        config = get_app_config()
        logger.info("Configuration validation:")
        logger.info(f"  STAC backend: {config.stac_backend or '(not configured)'}")
        logger.info(f"  Storage account: {config.storage_account_name or '(not configured)'}")
        logger.info(f"  Managed Identity: {config.use_managed_identity}")
        return True

    except Exception as e:
        logger.error(f"❌ Configuration validation failed: {e}")
        raise

# ============================================================================
# CLAUDE CONTEXT - INFRASTRUCTURE MODULE
# ============================================================================
# STATUS: Core Infrastructure - Storage access
# PURPOSE: Shared infrastructure components for the STAC API
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: BlobURLSigner, get_storage_credential, parse_az_href, AZ_SCHEME
# DEPENDENCIES: azure-storage-blob, azure-identity
# ============================================================================

"""
Infrastructure Module

Provides shared infrastructure components:
- Azure Blob Storage URL signing for catalog-owned assets (BlobURLSigner)
"""

from .blob import AZ_SCHEME, BlobURLSigner, get_storage_credential, parse_az_href

__version__ = "1.0.0"
__all__ = [
    "AZ_SCHEME",
    "BlobURLSigner",
    "get_storage_credential",
    "parse_az_href"
]

# ============================================================================
# CLAUDE CONTEXT - BLOB URL SIGNER
# ============================================================================
# STATUS: Core Infrastructure - Azure Blob Storage
# PURPOSE: Time-limited read URLs for catalog-owned assets (az:// hrefs)
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: BlobURLSigner, get_storage_credential, parse_az_href, AZ_SCHEME
# DEPENDENCIES: azure-storage-blob, azure-identity, util_logger
# PATTERNS: Lazy client creation, user delegation SAS (no account keys)
# ============================================================================

"""
Blob URL Signer

Thumbnails stored in the catalog's own storage account are referenced as

    az://<container>/<path/to/blob>

and handed to clients as a user delegation SAS URL with read permission only.
User delegation keys work with managed identity, so no account key is stored.

Usage:
    signer = BlobURLSigner("mystorageaccount", expiry_seconds=300)
    url = signer.signed_url("az://thumbnails/landsat/LC08_001.jpg")
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Tuple

from azure.identity import DefaultAzureCredential, ManagedIdentityCredential
from azure.storage.blob import BlobSasPermissions, BlobServiceClient, generate_blob_sas

from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.REPOSITORY, "BlobURLSigner")


AZ_SCHEME = "az://"


def parse_az_href(href: str) -> Optional[Tuple[str, str]]:
    """
    Split an az:// href into (container, blob name).

    Returns:
        (container, blob) or None when the href is not a complete az:// reference
    """
    if not href.startswith(AZ_SCHEME):
        return None
    container, _, blob_name = href[len(AZ_SCHEME):].partition("/")
    if not container or not blob_name:
        return None
    return container, blob_name


def get_storage_credential(use_managed_identity: bool = True, client_id: Optional[str] = None) -> Any:
    """
    Credential used to request user delegation keys.

    - managed identity with a client id: user-assigned ManagedIdentityCredential
    - managed identity: DefaultAzureCredential (system MI or az login)
    - managed identity disabled: DefaultAzureCredential without its managed
      identity source (environment variables, Azure CLI)
    """
    if use_managed_identity and client_id:
        logger.info(f"Using user-assigned Managed Identity: {client_id[:8]}...")
        return ManagedIdentityCredential(client_id=client_id)
    if use_managed_identity:
        logger.info("Using DefaultAzureCredential (system MI or az login)")
        return DefaultAzureCredential()
    logger.info("Managed identity disabled, using environment or az login credentials")
    return DefaultAzureCredential(exclude_managed_identity_credential=True)


class BlobURLSigner:
    """
    User delegation SAS generator for one storage account.

    The BlobServiceClient is created on first use.
    """

    def __init__(
        self,
        account_name: str,
        expiry_seconds: int = 300,
        credential: Optional[Any] = None
    ):
        self.account_name = account_name
        self.expiry_seconds = expiry_seconds
        self._credential = credential
        self._blob_service: Optional[BlobServiceClient] = None

    @property
    def account_url(self) -> str:
        return f"https://{self.account_name}.blob.core.windows.net"

    @property
    def blob_service(self) -> BlobServiceClient:
        if self._blob_service is None:
            credential = self._credential or DefaultAzureCredential()
            self._blob_service = BlobServiceClient(
                account_url=self.account_url,
                credential=credential
            )
            logger.debug(f"BlobServiceClient created for {self.account_url}")
        return self._blob_service

    def get_blob_url_with_sas(self, container_name: str, blob_name: str) -> str:
        """
        Blob URL with a read-only user delegation SAS.

        Args:
            container_name: Container name
            blob_name: Blob path

        Returns:
            Full blob URL with SAS token appended

        Raises:
            ValueError: user delegation key could not be obtained
        """
        logger.debug(
            f"Generating SAS URL for {container_name}/{blob_name} "
            f"(validity: {self.expiry_seconds}s)"
        )

        start_time = datetime.now(timezone.utc)
        expiry_time = start_time + timedelta(seconds=self.expiry_seconds)

        try:
            user_delegation_key = self.blob_service.get_user_delegation_key(
                key_start_time=start_time,
                key_expiry_time=expiry_time
            )
        except Exception as e:
            logger.error(f"Failed to get user delegation key: {e}")
            raise ValueError(
                "Failed to generate user delegation key. Ensure managed identity "
                f"has 'Storage Blob Delegator' role: {e}"
            ) from e

        sas_token = generate_blob_sas(
            account_name=self.account_name,
            container_name=container_name,
            blob_name=blob_name,
            user_delegation_key=user_delegation_key,
            permission=BlobSasPermissions(read=True),
            expiry=expiry_time,
            start=start_time
        )

        blob_client = self.blob_service.get_blob_client(container=container_name, blob=blob_name)
        return f"{blob_client.url}?{sas_token}"

    def signed_url(self, href: str) -> Optional[str]:
        """
        Signed URL for an az:// href.

        Returns:
            URL, or None when the href is not a usable az:// reference
        """
        parsed = parse_az_href(href)
        if parsed is None:
            return None
        return self.get_blob_url_with_sas(*parsed)

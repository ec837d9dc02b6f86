"""
Root conftest.py: sys.path, env vars, shared fixtures.

Sets up the test environment so all production code can be imported
without a search backend or Azure credentials.
"""

import os
import sys

import pytest

# Add project root to sys.path so 'stac_api', 'config', 'util_logger' etc. are importable
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from stac_api.config import STACAPIConfig, reset_stac_config
from stac_api.service import STACAPIService
from tests.factories.stac_factories import (
    FakeBackend,
    FakeURLSigner,
    make_collection,
    make_item,
)


ENDPOINT = "https://stac.example.com/api/stac"


@pytest.fixture(autouse=True, scope="session")
def set_minimal_env_vars():
    """
    Clear STAC environment variables so defaults are deterministic.

    Tests that need a value set it with monkeypatch.
    """
    for key in (
        "STAC_ID", "STAC_TITLE", "STAC_DESCRIPTION", "STAC_VERSION", "STAC_DOCS_URL",
        "STAC_SERVER_COLLECTION_LIMIT", "ENABLE_TRANSACTIONS_EXTENSION", "STAC_BASE_URL",
        "STAC_BACKEND", "STORAGE_ACCOUNT_NAME", "USE_MANAGED_IDENTITY", "MANAGED_IDENTITY_CLIENT_ID",
    ):
        os.environ.pop(key, None)


@pytest.fixture(autouse=True)
def clear_config_cache():
    reset_stac_config()
    yield
    reset_stac_config()


@pytest.fixture
def endpoint():
    return ENDPOINT


@pytest.fixture
def stac_config():
    """Explicit configuration; independent of the environment."""
    return STACAPIConfig(
        catalog_id="test-catalog",
        catalog_title="Test Catalog",
        catalog_description="Catalog used by the test suite",
        stac_version="1.0.0",
        docs_url=None,
        collection_limit=100,
        enable_transactions=True,
        stac_base_url="https://stac.example.com",
        thumbnail_url_expiry_seconds=300,
    )


@pytest.fixture
def items():
    return [
        make_item("LC08_001", properties={"datetime": "2021-03-01T00:00:00Z"}),
        make_item("LC08_002", properties={"datetime": "2021-02-01T00:00:00Z"}),
        make_item("S2A_003", collection="sentinel-2-l2a",
                  properties={"datetime": "2021-01-01T00:00:00Z"}),
    ]


@pytest.fixture
def collections():
    return [make_collection("landsat-c2-l2"), make_collection("sentinel-2-l2a")]


@pytest.fixture
def backend(items, collections):
    return FakeBackend(items=items, collections=collections)


@pytest.fixture
def url_signer():
    return FakeURLSigner()


@pytest.fixture
def service(stac_config, backend, url_signer):
    return STACAPIService(stac_config, backend, url_signer=url_signer)

from unittest.mock import MagicMock

import pytest

from shopify_bitrix.conf import BitrixConfig
from shopify_bitrix.services.bitrix_client import BitrixClient


@pytest.fixture
def bitrix_config():
    """Config mirroring the production tables, with a real shipping product."""
    return BitrixConfig.from_dicts(
        {
            "WEBHOOK_URL": "https://example.bitrix24.com/rest/1/testtoken/",
            "CATEGORY_ID": 2,
            "SOURCES": {"SHOPIFY": "WEB", "SHOPIFY_DRAFT_ORDER": "CALL"},
            "SHIPPING_PRODUCT_ID": 900,
            "SKU_TO_PRODUCT_ID": {"ALB0002": 102, "ALB0005": 105},
        }
    )


@pytest.fixture
def bitrix_client():
    """MagicMock standing in for a BitrixClient; deal.add returns id 77."""
    client = MagicMock(spec=BitrixClient)
    client.add_deal.return_value = {"result": 77}
    client.update_deal.return_value = {"result": True}
    client.set_deal_product_rows.return_value = {"result": True}
    client.list_deals.return_value = {"result": []}
    client.list_contacts.return_value = {"result": []}
    client.add_contact.return_value = {"result": 501}
    return client


@pytest.fixture(autouse=True)
def mock_statsd(mocker):
    """Keep Datadog metrics off the network during tests."""
    return mocker.patch("shopify_bitrix.views.statsd")

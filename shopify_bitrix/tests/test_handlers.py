"""Tests for the order webhook handlers and topic registry."""

from unittest.mock import patch

from shopify_bitrix.handlers.orders import handle_order_created, handle_order_updated
from shopify_bitrix.router import ORDER_TOPICS, get_handler, register_handler

ORDER = {"id": 123, "name": "#1001"}


class TestTopicRegistry:
    def test_order_topics_registered_on_app_ready(self):
        assert get_handler("orders/create") is handle_order_created
        assert get_handler("orders/updated") is handle_order_updated

    def test_unknown_topic_has_no_handler(self):
        assert get_handler("orders/delete") is None
        assert get_handler("") is None

    def test_order_topics(self):
        assert ORDER_TOPICS == {"orders/create", "orders/updated"}

    def test_register_handler_overrides(self):
        def replacement(order):
            return "replaced"

        try:
            register_handler("orders/create", replacement)
            assert get_handler("orders/create") is replacement
        finally:
            register_handler("orders/create", handle_order_created)


class TestHandleOrderCreated:
    @patch("shopify_bitrix.handlers.orders.create_deal_from_order")
    def test_delegates_to_create_flow(self, mock_create):
        mock_create.return_value = 77

        assert handle_order_created(ORDER) == 77
        mock_create.assert_called_once_with(ORDER)


class TestHandleOrderUpdated:
    @patch("shopify_bitrix.handlers.orders.update_deal_from_order")
    def test_delegates_to_update_flow(self, mock_update):
        mock_update.return_value = "55"

        assert handle_order_updated(ORDER) == "55"
        mock_update.assert_called_once_with(ORDER)

    @patch("shopify_bitrix.handlers.orders.update_deal_from_order")
    def test_missing_deal_returns_none(self, mock_update):
        mock_update.return_value = None

        assert handle_order_updated(ORDER) is None

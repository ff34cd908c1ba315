"""Tests for the Shopify order webhook view: dispatch, responses and event recording."""

import base64
import hashlib
import hmac as hmac_mod
import json

import pytest
from rest_framework.test import APIClient

from shopify_bitrix.models import WebhookEvent
from shopify_bitrix.views import MAX_BODY_BYTES

pytestmark = pytest.mark.django_db

ORDERS_URL = "/webhooks/shopify/orders/"
WEBHOOK_SECRET = "test-secret-for-views"

E2E_ORDER = {
    "id": 123,
    "name": "#1001",
    "financial_status": "paid",
    "line_items": [{"sku": "ALB0002", "quantity": 2, "price": "10.00"}],
}


def _hmac_header(body: bytes, secret: str = WEBHOOK_SECRET) -> str:
    """Compute a valid HMAC-SHA256 header value."""
    return base64.b64encode(
        hmac_mod.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    ).decode("utf-8")


def _post_webhook(client, payload, topic="orders/create", **extra):
    """Helper to POST an order webhook with Shopify headers."""
    body = payload if isinstance(payload, bytes) else json.dumps(payload).encode("utf-8")
    return client.post(
        ORDERS_URL,
        data=body,
        content_type="application/json",
        HTTP_X_SHOPIFY_TOPIC=topic,
        HTTP_X_SHOPIFY_SHOP_DOMAIN="test-shop.myshopify.com",
        HTTP_X_SHOPIFY_WEBHOOK_ID="wh_test_001",
        **extra,
    )


@pytest.fixture
def crm(mocker, bitrix_client):
    """Route the sync flows to the mocked Bitrix client."""
    mocker.patch(
        "shopify_bitrix.services.deal_sync.get_bitrix_client",
        return_value=bitrix_client,
    )
    return bitrix_client


class TestOrderWebhookDispatch:
    def setup_method(self):
        self.client = APIClient()

    def test_order_create_end_to_end(self, crm):
        response = _post_webhook(self.client, E2E_ORDER, topic="orders/create")

        assert response.status_code == 200
        assert response.content == b"OK"

        fields = crm.add_deal.call_args[0][0]
        assert fields["STAGE_ID"] == "C2:WON"
        assert fields["UF_CRM_PAYMENT_STATUS"] == "PAID"
        assert fields["UF_SHOPIFY_ORDER_ID"] == "123"

        deal_id, rows = crm.set_deal_product_rows.call_args[0]
        assert deal_id == 77
        assert len(rows) == 1
        assert rows[0]["QUANTITY"] == 2
        assert rows[0]["PRICE"] == 10.0

    def test_order_updated_dispatches_update_flow(self, crm):
        crm.list_deals.return_value = {
            "result": [{"ID": "55", "OPPORTUNITY": "0", "STAGE_ID": "C2:NEW"}]
        }

        response = _post_webhook(self.client, E2E_ORDER, topic="orders/updated")

        assert response.status_code == 200
        crm.add_deal.assert_not_called()
        crm.update_deal.assert_called_once()
        assert crm.update_deal.call_args[0][0] == "55"

    def test_update_without_deal_returns_ok(self, crm):
        response = _post_webhook(self.client, E2E_ORDER, topic="orders/updated")

        assert response.status_code == 200
        crm.update_deal.assert_not_called()
        crm.set_deal_product_rows.assert_not_called()

    def test_unhandled_topic_is_noop(self, crm):
        response = _post_webhook(self.client, E2E_ORDER, topic="orders/delete")

        assert response.status_code == 200
        assert response.content == b"OK"
        assert crm.method_calls == []

    def test_missing_topic_is_noop(self, crm):
        response = self.client.post(
            ORDERS_URL, data=json.dumps(E2E_ORDER), content_type="application/json"
        )

        assert response.status_code == 200
        assert crm.method_calls == []

    def test_numeric_financial_status_creates_new_deal(self, crm):
        order = {"id": 1, "financial_status": 2, "line_items": []}

        response = _post_webhook(self.client, order)

        assert response.status_code == 200
        fields = crm.add_deal.call_args[0][0]
        assert fields["STAGE_ID"] == "C2:NEW"
        assert fields["UF_CRM_PAYMENT_STATUS"] == "NOT_PAID"

    def test_flow_failure_returns_500(self, crm):
        crm.add_deal.return_value = {"error": "nope"}

        response = _post_webhook(self.client, E2E_ORDER)

        assert response.status_code == 500
        assert response.content == b"ERROR"


class TestOrderWebhookRequestValidation:
    def setup_method(self):
        self.client = APIClient()

    @pytest.mark.parametrize("method", ["get", "put", "delete", "patch"])
    def test_non_post_methods_return_405(self, crm, method):
        response = getattr(self.client, method)(ORDERS_URL)

        assert response.status_code == 405
        assert crm.method_calls == []
        assert not WebhookEvent.objects.exists()

    def test_invalid_json_returns_400(self, crm):
        response = _post_webhook(self.client, b"{not json")

        assert response.status_code == 400
        assert crm.method_calls == []

    def test_non_object_json_returns_400(self, crm):
        response = _post_webhook(self.client, [1, 2, 3])

        assert response.status_code == 400

    def test_oversized_body_returns_413(self, crm):
        body = json.dumps({"id": 1, "note": "x" * MAX_BODY_BYTES}).encode("utf-8")

        response = _post_webhook(self.client, body)

        assert response.status_code == 413
        assert crm.method_calls == []


class TestOrderWebhookSignature:
    def setup_method(self):
        self.client = APIClient()

    @pytest.fixture(autouse=True)
    def _secret(self, settings):
        settings.SHOPIFY_WEBHOOKS = {"WEBHOOK_SECRET": WEBHOOK_SECRET}

    def test_valid_signature_accepted(self, crm):
        body = json.dumps(E2E_ORDER).encode("utf-8")

        response = _post_webhook(
            self.client, body, HTTP_X_SHOPIFY_HMAC_SHA256=_hmac_header(body)
        )

        assert response.status_code == 200
        crm.add_deal.assert_called_once()

    def test_invalid_signature_rejected(self, crm):
        body = json.dumps(E2E_ORDER).encode("utf-8")

        response = _post_webhook(
            self.client, body, HTTP_X_SHOPIFY_HMAC_SHA256=_hmac_header(body, "wrong")
        )

        assert response.status_code == 401
        crm.add_deal.assert_not_called()

    def test_missing_signature_rejected(self, crm):
        response = _post_webhook(self.client, E2E_ORDER)

        assert response.status_code == 401


class TestWebhookEventRecording:
    def setup_method(self):
        self.client = APIClient()

    def test_successful_create_is_recorded(self, crm):
        body = json.dumps(E2E_ORDER).encode("utf-8")

        _post_webhook(self.client, body)

        event = WebhookEvent.objects.get()
        assert event.topic == "orders/create"
        assert event.order_id == "123"
        assert event.order_name == "#1001"
        assert event.webhook_id == "wh_test_001"
        assert event.shop_domain == "test-shop.myshopify.com"
        assert event.payload == E2E_ORDER
        assert event.payload_hash == hashlib.sha256(body).hexdigest()
        assert event.status == WebhookEvent.Status.SUCCESS
        assert event.deal_id == "77"
        assert event.processing_time_ms is not None

    def test_failed_flow_is_recorded(self, crm):
        crm.add_deal.return_value = {"result": None}

        _post_webhook(self.client, E2E_ORDER)

        event = WebhookEvent.objects.get()
        assert event.status == WebhookEvent.Status.FAILED
        assert "Failed to create deal" in event.error_message

    def test_unhandled_topic_is_recorded_as_ignored(self, crm):
        _post_webhook(self.client, E2E_ORDER, topic="orders/delete")

        assert WebhookEvent.objects.get().status == WebhookEvent.Status.IGNORED

    def test_null_order_id_is_recorded_as_empty(self, crm):
        _post_webhook(self.client, {"id": None, "line_items": []}, topic="orders/delete")

        assert WebhookEvent.objects.get().order_id == ""

    def test_redelivery_is_not_deduplicated(self, crm):
        _post_webhook(self.client, E2E_ORDER)
        _post_webhook(self.client, E2E_ORDER)

        assert crm.add_deal.call_count == 2
        assert WebhookEvent.objects.filter(webhook_id="wh_test_001").count() == 2

    def test_event_store_failure_does_not_block(self, crm, mocker):
        mocker.patch(
            "shopify_bitrix.views.WebhookEvent.objects.create",
            side_effect=RuntimeError("db down"),
        )

        response = _post_webhook(self.client, E2E_ORDER)

        assert response.status_code == 200
        crm.add_deal.assert_called_once()

    def test_metrics_emitted(self, crm, mock_statsd):
        _post_webhook(self.client, E2E_ORDER)

        metric_names = [c[0][0] for c in mock_statsd.increment.call_args_list]
        assert metric_names == ["shopify.webhook.received", "shopify.webhook.processed"]
        mock_statsd.histogram.assert_called_once()

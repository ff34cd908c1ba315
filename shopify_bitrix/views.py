import hashlib
import json
import logging
import time

from datadog import statsd
from django.http import HttpResponse
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.views import APIView

from .conf import get_bitrix_config
from .middleware import is_authentic_webhook
from .models import WebhookEvent
from .router import get_handler
from .utils import best_effort

logger = logging.getLogger(__name__)

MAX_BODY_BYTES = 1024 * 1024


def _plain(body, status_code):
    return HttpResponse(body, status=status_code, content_type="text/plain")


def _record_event(request, topic, raw_body, order):
    return WebhookEvent.objects.create(
        webhook_id=request.META.get("HTTP_X_SHOPIFY_WEBHOOK_ID", ""),
        topic=topic,
        shop_domain=request.META.get("HTTP_X_SHOPIFY_SHOP_DOMAIN", ""),
        order_id=str(order.get("id") or ""),
        order_name=str(order.get("name") or ""),
        status=WebhookEvent.Status.RECEIVED,
        payload=order,
        payload_hash=hashlib.sha256(raw_body).hexdigest(),
    )


def _finish_event(event, event_status, elapsed_ms, deal_id=None, error_message=""):
    event.status = event_status
    event.processing_time_ms = elapsed_ms
    event.error_message = error_message[:2000]
    if deal_id is not None:
        event.deal_id = str(deal_id)
    event.save(
        update_fields=[
            "status",
            "processing_time_ms",
            "error_message",
            "deal_id",
            "updated_at",
        ]
    )


class ShopifyOrderWebhookView(APIView):
    """Receives Shopify order webhooks and mirrors them into Bitrix24 deals.

    Handles ``orders/create`` and ``orders/updated``; other topics are
    acknowledged and ignored.  The sync runs inline, so the response
    reflects the outcome: ``200 OK`` on success or no-op, ``500 ERROR`` when
    the flow raises.  Only POST is allowed; DRF answers 405 for the rest.
    """

    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        # 1. Enforce the body size cap before reading the stream.
        content_length = request.META.get("CONTENT_LENGTH") or 0
        try:
            content_length = int(content_length)
        except ValueError:
            content_length = 0
        if content_length > MAX_BODY_BYTES:
            return _plain("Payload too large", status.HTTP_413_REQUEST_ENTITY_TOO_LARGE)

        raw_body = request.body
        if len(raw_body) > MAX_BODY_BYTES:
            return _plain("Payload too large", status.HTTP_413_REQUEST_ENTITY_TOO_LARGE)

        # 2. Verify HMAC signature when a secret is configured
        config = get_bitrix_config()
        hmac_header = request.META.get("HTTP_X_SHOPIFY_HMAC_SHA256", "")
        if not is_authentic_webhook(raw_body, hmac_header, config.webhook_secret):
            logger.warning("HMAC verification failed for Shopify order webhook")
            return _plain("Unauthorized", status.HTTP_401_UNAUTHORIZED)

        # 3. Decode the order payload
        try:
            order = json.loads(raw_body)
        except (UnicodeDecodeError, json.JSONDecodeError):
            return _plain("Invalid JSON body", status.HTTP_400_BAD_REQUEST)
        if not isinstance(order, dict):
            return _plain("Invalid JSON body", status.HTTP_400_BAD_REQUEST)

        topic = request.META.get("HTTP_X_SHOPIFY_TOPIC", "")
        tags = [f"topic:{topic}"]
        statsd.increment("shopify.webhook.received", tags=tags)

        # 4. Record the event for monitoring (non-blocking)
        recorded = best_effort(
            "Webhook event recording", _record_event, request, topic, raw_body, order
        )
        event = recorded.value
        if recorded.ok:
            logger.info(
                "Event stored. Topic: %s, Order: %s",
                topic,
                order.get("name") or order.get("id"),
            )

        # 5. Dispatch to the registered handler
        start = time.monotonic()
        handler = get_handler(topic)
        deal_id = None
        error_message = ""
        if handler is None:
            logger.info("Unhandled topic: %s", topic)
            event_status = WebhookEvent.Status.IGNORED
        else:
            try:
                deal_id = handler(order)
                event_status = WebhookEvent.Status.SUCCESS
            except Exception as exc:
                logger.exception(
                    "Failed to process Shopify webhook (topic=%s, order=%s)",
                    topic,
                    order.get("id"),
                )
                event_status = WebhookEvent.Status.FAILED
                error_message = str(exc)

        # 6. Record the outcome
        elapsed_ms = int((time.monotonic() - start) * 1000)
        if event is not None:
            best_effort(
                "Webhook event update",
                _finish_event,
                event,
                event_status,
                elapsed_ms,
                deal_id=deal_id,
                error_message=error_message,
            )

        result_tags = tags + [f"status:{event_status}"]
        if event_status == WebhookEvent.Status.SUCCESS:
            statsd.increment("shopify.webhook.processed", tags=result_tags)
        elif event_status == WebhookEvent.Status.FAILED:
            statsd.increment("shopify.webhook.failed", tags=result_tags)
        else:
            statsd.increment("shopify.webhook.ignored", tags=result_tags)
        statsd.histogram(
            "shopify.webhook.processing_time_ms", elapsed_ms, tags=result_tags
        )

        if event_status == WebhookEvent.Status.FAILED:
            return _plain("ERROR", status.HTTP_500_INTERNAL_SERVER_ERROR)
        return _plain("OK", status.HTTP_200_OK)

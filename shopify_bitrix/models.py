from django.db import models


class WebhookEvent(models.Model):
    """Monitoring log of every order webhook received.

    Rows are written best-effort and never gate processing; the same
    ``webhook_id`` may appear more than once when Shopify redelivers.
    """

    class Status(models.TextChoices):
        RECEIVED = "received"
        SUCCESS = "success"
        FAILED = "failed"
        IGNORED = "ignored"

    webhook_id = models.CharField(max_length=255, blank=True, default="", db_index=True)
    topic = models.CharField(max_length=100)
    shop_domain = models.CharField(max_length=255, blank=True, default="")
    order_id = models.CharField(max_length=64, blank=True, default="", db_index=True)
    order_name = models.CharField(max_length=64, blank=True, default="")
    status = models.CharField(
        max_length=20, choices=Status.choices, default=Status.RECEIVED
    )
    payload = models.JSONField(default=dict, blank=True)
    payload_hash = models.CharField(max_length=64)
    deal_id = models.CharField(max_length=64, blank=True, default="")
    error_message = models.TextField(blank=True, default="")
    processing_time_ms = models.IntegerField(null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "shopify_bitrix_webhook_event"
        indexes = [
            models.Index(
                fields=["topic", "created_at"], name="shopify_bx_topic_idx"
            ),
        ]

    def __str__(self):
        return f"{self.topic} [{self.status}] order={self.order_id or '?'}"

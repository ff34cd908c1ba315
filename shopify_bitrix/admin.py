from django.contrib import admin

from .models import WebhookEvent


@admin.register(WebhookEvent)
class WebhookEventAdmin(admin.ModelAdmin):
    list_display = (
        "order_name",
        "order_id",
        "topic",
        "status",
        "deal_id",
        "processing_time_ms",
        "created_at",
    )
    list_filter = (
        "status",
        "topic",
    )
    search_fields = (
        "order_id",
        "order_name",
        "deal_id",
        "webhook_id",
    )
    readonly_fields = (
        "payload",
        "payload_hash",
        "processing_time_ms",
        "created_at",
        "updated_at",
    )
    date_hierarchy = "created_at"
    ordering = ("-created_at",)

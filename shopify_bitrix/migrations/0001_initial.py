# Generated manually for shopify_bitrix app

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="WebhookEvent",
            fields=[
                (
                    "id",
                    models.AutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "webhook_id",
                    models.CharField(
                        blank=True, db_index=True, default="", max_length=255
                    ),
                ),
                ("topic", models.CharField(max_length=100)),
                (
                    "shop_domain",
                    models.CharField(blank=True, default="", max_length=255),
                ),
                (
                    "order_id",
                    models.CharField(
                        blank=True, db_index=True, default="", max_length=64
                    ),
                ),
                (
                    "order_name",
                    models.CharField(blank=True, default="", max_length=64),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("received", "Received"),
                            ("success", "Success"),
                            ("failed", "Failed"),
                            ("ignored", "Ignored"),
                        ],
                        default="received",
                        max_length=20,
                    ),
                ),
                ("payload", models.JSONField(blank=True, default=dict)),
                ("payload_hash", models.CharField(max_length=64)),
                (
                    "deal_id",
                    models.CharField(blank=True, default="", max_length=64),
                ),
                ("error_message", models.TextField(blank=True, default="")),
                ("processing_time_ms", models.IntegerField(null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "shopify_bitrix_webhook_event",
                "indexes": [
                    models.Index(
                        fields=["topic", "created_at"],
                        name="shopify_bx_topic_idx",
                    ),
                ],
            },
        ),
    ]

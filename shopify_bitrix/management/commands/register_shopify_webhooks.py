"""
Register the Shopify order webhook subscriptions that feed the Bitrix24 bridge.

Shop credentials come from ``settings.SHOPIFY_WEBHOOKS`` (``SHOP_DOMAIN``,
``API_ACCESS_TOKEN``, ``API_VERSION``).

Usage:
    python manage.py register_shopify_webhooks --base-url https://example.com/webhooks/shopify

    # List current registrations
    python manage.py register_shopify_webhooks --list

    # Remove the order webhooks
    python manage.py register_shopify_webhooks --delete
"""

import requests
from django.core.management.base import BaseCommand, CommandError

from shopify_bitrix.conf import get_bitrix_config
from shopify_bitrix.router import ORDER_CREATED_TOPIC, ORDER_UPDATED_TOPIC

ORDERS_ENDPOINT_PATH = "/orders/"

# Ordered list of topics to register.
WEBHOOK_TOPICS = [
    ORDER_CREATED_TOPIC,
    ORDER_UPDATED_TOPIC,
]

API_TIMEOUT = 30


class Command(BaseCommand):
    help = "Register Shopify order webhook subscriptions for the Bitrix24 bridge"

    def add_arguments(self, parser):
        parser.add_argument(
            "--base-url",
            type=str,
            default="",
            help="Public URL the shopify_bitrix urls are mounted at "
            "(e.g. https://example.com/webhooks/shopify).",
        )
        parser.add_argument(
            "--list",
            action="store_true",
            dest="list_webhooks",
            help="List currently registered webhooks for the shop.",
        )
        parser.add_argument(
            "--delete",
            action="store_true",
            help="Delete the order webhooks registered for the shop.",
        )

    def handle(self, *args, **options):
        config = get_bitrix_config()
        if not config.shop_domain or not config.api_access_token:
            raise CommandError(
                "SHOPIFY_WEBHOOKS['SHOP_DOMAIN'] and ['API_ACCESS_TOKEN'] must be set."
            )

        if options["list_webhooks"]:
            self._list_webhooks(config)
            return

        if options["delete"]:
            self._delete_order_webhooks(config)
            return

        base_url = options["base_url"]
        if not base_url:
            raise CommandError("--base-url is required when registering webhooks.")

        self._register_webhooks(config, base_url.rstrip("/"))

    # ------------------------------------------------------------------
    # Shopify Admin API helpers
    # ------------------------------------------------------------------

    def _api_url(self, config, path):
        """Build a Shopify Admin API URL."""
        return (
            f"https://{config.shop_domain}/admin/api/"
            f"{config.api_version}/{path}"
        )

    def _api_headers(self, config):
        """Return headers for authenticated Shopify Admin API requests."""
        return {
            "X-Shopify-Access-Token": config.api_access_token,
            "Content-Type": "application/json",
        }

    def _fetch_webhooks(self, config):
        """Return the shop's webhook subscriptions, raising on HTTP errors."""
        response = requests.get(
            self._api_url(config, "webhooks.json"),
            headers=self._api_headers(config),
            timeout=API_TIMEOUT,
        )
        if response.status_code != 200:
            raise CommandError(
                f"Failed to list webhooks "
                f"(HTTP {response.status_code}): {response.text}"
            )
        return response.json().get("webhooks", [])

    # ------------------------------------------------------------------
    # List
    # ------------------------------------------------------------------

    def _list_webhooks(self, config):
        webhooks = self._fetch_webhooks(config)
        if not webhooks:
            self.stdout.write(f"No webhooks registered for {config.shop_domain}")
            return

        self.stdout.write(f"Webhooks for {config.shop_domain}:")
        self.stdout.write(f"{'ID':<15} {'Topic':<30} {'Address'}")
        self.stdout.write("-" * 80)
        for wh in webhooks:
            self.stdout.write(
                f"{wh['id']:<15} {wh['topic']:<30} {wh.get('address', '')}"
            )
        self.stdout.write(f"\nTotal: {len(webhooks)}")

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def _delete_order_webhooks(self, config):
        webhooks = [
            wh for wh in self._fetch_webhooks(config) if wh["topic"] in WEBHOOK_TOPICS
        ]
        if not webhooks:
            self.stdout.write(f"No order webhooks to delete for {config.shop_domain}")
            return

        deleted = 0
        for wh in webhooks:
            wh_id = wh["id"]
            del_resp = requests.delete(
                self._api_url(config, f"webhooks/{wh_id}.json"),
                headers=self._api_headers(config),
                timeout=API_TIMEOUT,
            )
            if del_resp.status_code == 200:
                self.stdout.write(f"  Deleted webhook {wh_id} ({wh['topic']})")
                deleted += 1
            else:
                self.stderr.write(
                    f"  FAILED to delete webhook {wh_id} "
                    f"(HTTP {del_resp.status_code}): {del_resp.text}"
                )

        self.stdout.write(f"\nDeleted {deleted}/{len(webhooks)} webhooks")

    # ------------------------------------------------------------------
    # Register
    # ------------------------------------------------------------------

    def _register_webhooks(self, config, base_url):
        """Register the order topics, skipping any that already exist."""
        existing_topics = {wh["topic"] for wh in self._fetch_webhooks(config)}
        callback_url = f"{base_url}{ORDERS_ENDPOINT_PATH}"

        created = 0
        skipped = 0
        failed = 0

        for topic in WEBHOOK_TOPICS:
            if topic in existing_topics:
                self.stdout.write(f"  SKIP: {topic} (already registered)")
                skipped += 1
                continue

            payload = {
                "webhook": {
                    "topic": topic,
                    "address": callback_url,
                    "format": "json",
                }
            }
            resp = requests.post(
                self._api_url(config, "webhooks.json"),
                json=payload,
                headers=self._api_headers(config),
                timeout=API_TIMEOUT,
            )

            if resp.status_code in (200, 201):
                wh_data = resp.json().get("webhook", {})
                self.stdout.write(
                    f"  SUCCESS: {topic} → {callback_url} "
                    f"(id={wh_data.get('id', '?')})"
                )
                created += 1
            elif resp.status_code == 422:
                # Shopify returns 422 when the webhook already exists.
                self.stdout.write(f"  SKIP: {topic} (already exists per Shopify)")
                skipped += 1
            else:
                self.stderr.write(
                    f"  FAILED: {topic} (HTTP {resp.status_code}): {resp.text}"
                )
                failed += 1

        self.stdout.write(
            f"\nDone: {created} created, {skipped} skipped, {failed} failed "
            f"(domain={config.shop_domain})"
        )

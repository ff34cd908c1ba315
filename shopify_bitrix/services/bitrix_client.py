"""Thin Bitrix24 REST client for inbound-webhook (``/rest/<user>/<token>/``) URLs."""

import logging

import requests
from django.core.exceptions import ImproperlyConfigured

from ..conf import get_bitrix_config

logger = logging.getLogger(__name__)


class BitrixAPIError(Exception):
    """Bitrix24 answered, but with an error payload or an unusable result."""

    def __init__(self, message, response=None):
        super().__init__(message)
        self.response = response


class BitrixClient:
    """Calls Bitrix24 REST methods over a shared ``requests.Session``.

    Every method returns the decoded JSON body, e.g. ``{"result": 42}``.
    HTTP-level failures raise :class:`requests.HTTPError`; Bitrix-level
    failures (``{"error": ..., "error_description": ...}``) raise
    :class:`BitrixAPIError`.
    """

    def __init__(self, webhook_url, timeout=10, session=None):
        if not webhook_url:
            raise ImproperlyConfigured("BITRIX24['WEBHOOK_URL'] is not set")
        self.webhook_url = webhook_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def call(self, method, params=None):
        url = f"{self.webhook_url}/{method}.json"
        response = self.session.post(url, json=params or {}, timeout=self.timeout)
        response.raise_for_status()

        data = response.json()
        if "error" in data:
            message = data.get("error_description") or data["error"]
            logger.error("Bitrix24 %s failed: %s", method, message)
            raise BitrixAPIError(f"{method}: {message}", response=data)
        return data

    # -- deals --------------------------------------------------------------

    def add_deal(self, fields):
        return self.call("crm.deal.add", {"fields": fields})

    def update_deal(self, deal_id, fields):
        return self.call("crm.deal.update", {"id": deal_id, "fields": fields})

    def set_deal_product_rows(self, deal_id, rows):
        return self.call("crm.deal.productrows.set", {"id": deal_id, "rows": rows})

    def list_deals(self, filter, select):
        return self.call("crm.deal.list", {"filter": filter, "select": select})

    # -- contacts -----------------------------------------------------------

    def list_contacts(self, filter, select):
        return self.call("crm.contact.list", {"filter": filter, "select": select})

    def add_contact(self, fields):
        return self.call("crm.contact.add", {"fields": fields})


def get_bitrix_client(config=None):
    """Build a :class:`BitrixClient` from the process configuration."""
    config = config or get_bitrix_config()
    return BitrixClient(config.webhook_url, timeout=config.timeout)

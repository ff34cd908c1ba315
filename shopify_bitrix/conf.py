"""Static configuration for the Shopify → Bitrix24 bridge.

Values are read once from Django settings and frozen into a
:class:`BitrixConfig`.  The mapper, status lookups and sync flows take the
config as an argument, so tests can pass alternate tables without touching
settings.

Example settings::

    BITRIX24 = {
        "WEBHOOK_URL": "https://portal.bitrix24.com/rest/1/abc123/",
        "CATEGORY_ID": 2,
        "STAGES": {"PAID": "C2:WON"},
        "SHIPPING_PRODUCT_ID": 0,
        "SKU_TO_PRODUCT_ID": {"ALB0002": 0},
    }
    SHOPIFY_WEBHOOKS = {"WEBHOOK_SECRET": "..."}
"""

import functools
from dataclasses import dataclass, field
from types import MappingProxyType

from django.conf import settings
from django.core.signals import setting_changed
from django.dispatch import receiver

DEFAULT_CATEGORY_ID = 2

DEFAULT_STAGES = {
    "PAID": "C2:WON",
    "PENDING": "C2:PREPARATION",
    "REFUNDED": "C2:LOSE",
    "CANCELLED": "C2:LOSE",
    "DEFAULT": "C2:NEW",
}

DEFAULT_SOURCES = {
    "SHOPIFY_DRAFT_ORDER": "",
    "SHOPIFY": "",
}

DEFAULT_TIMEOUT = 10
DEFAULT_API_VERSION = "2024-07"


def _frozen(mapping):
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class BitrixConfig:
    """Immutable bridge configuration, one instance per process."""

    webhook_url: str = ""
    category_id: int = DEFAULT_CATEGORY_ID
    stages: MappingProxyType = field(default_factory=lambda: _frozen(DEFAULT_STAGES))
    sources: MappingProxyType = field(default_factory=lambda: _frozen(DEFAULT_SOURCES))
    shipping_product_id: int = 0
    sku_to_product_id: MappingProxyType = field(default_factory=lambda: _frozen({}))
    timeout: int = DEFAULT_TIMEOUT
    webhook_secret: str = ""
    shop_domain: str = ""
    api_access_token: str = ""
    api_version: str = DEFAULT_API_VERSION

    @classmethod
    def from_dicts(cls, bitrix=None, shopify=None):
        """Build a config from the ``BITRIX24`` / ``SHOPIFY_WEBHOOKS`` dicts.

        Stage and source tables are merged over the defaults so a partial
        override never leaves a financial status without a stage.
        """
        bitrix = bitrix or {}
        shopify = shopify or {}
        return cls(
            webhook_url=bitrix.get("WEBHOOK_URL", ""),
            category_id=bitrix.get("CATEGORY_ID", DEFAULT_CATEGORY_ID),
            stages=_frozen({**DEFAULT_STAGES, **bitrix.get("STAGES", {})}),
            sources=_frozen({**DEFAULT_SOURCES, **bitrix.get("SOURCES", {})}),
            shipping_product_id=bitrix.get("SHIPPING_PRODUCT_ID", 0),
            sku_to_product_id=_frozen(bitrix.get("SKU_TO_PRODUCT_ID", {})),
            timeout=bitrix.get("TIMEOUT", DEFAULT_TIMEOUT),
            webhook_secret=shopify.get("WEBHOOK_SECRET", ""),
            shop_domain=shopify.get("SHOP_DOMAIN", ""),
            api_access_token=shopify.get("API_ACCESS_TOKEN", ""),
            api_version=shopify.get("API_VERSION", DEFAULT_API_VERSION),
        )


@functools.lru_cache(maxsize=None)
def get_bitrix_config():
    """Return the process-wide :class:`BitrixConfig` built from settings."""
    return BitrixConfig.from_dicts(
        getattr(settings, "BITRIX24", None),
        getattr(settings, "SHOPIFY_WEBHOOKS", None),
    )


@receiver(setting_changed)
def _reset_bitrix_config(setting, **kwargs):
    if setting in ("BITRIX24", "SHOPIFY_WEBHOOKS"):
        get_bitrix_config.cache_clear()

"""Lookup tables translating Shopify order states into Bitrix24 values.

All lookups are total: unknown, empty, ``None`` or non-string input falls
through to an explicit default instead of raising.
"""

from ..conf import DEFAULT_STAGES

# financial_status → key into BitrixConfig.stages
FINANCIAL_STATUS_STAGE_KEYS = {
    "paid": "PAID",
    "pending": "PENDING",
    "refunded": "REFUNDED",
    "cancelled": "CANCELLED",
    "partially_paid": "PENDING",
    "partially_refunded": "REFUNDED",
    "voided": "CANCELLED",
}
DEFAULT_STAGE_KEY = "DEFAULT"

# financial_status → UF_CRM_PAYMENT_STATUS code
FINANCIAL_STATUS_PAYMENT_CODES = {
    "paid": "PAID",
    "pending": "NOT_PAID",
    "refunded": "REFUNDED",
    "cancelled": "VOIDED",
    "partially_paid": "PARTIALLY_PAID",
    "partially_refunded": "PARTIALLY_REFUNDED",
    "voided": "VOIDED",
}
DEFAULT_PAYMENT_CODE = "NOT_PAID"

# order.source_name → key into BitrixConfig.sources
SOURCE_NAME_KEYS = {
    "shopify_draft_order": "SHOPIFY_DRAFT_ORDER",
    "shopify": "SHOPIFY",
    "web": "SHOPIFY",
    "pos": "SHOPIFY",
}


def _normalise(value):
    # Non-string payload values never match a table key.
    if not isinstance(value, str):
        return ""
    return value.strip().lower()


def financial_status_to_stage_id(financial_status, config):
    """Return the deal ``STAGE_ID`` for a Shopify financial status."""
    key = FINANCIAL_STATUS_STAGE_KEYS.get(
        _normalise(financial_status), DEFAULT_STAGE_KEY
    )
    return (
        config.stages.get(key)
        or config.stages.get(DEFAULT_STAGE_KEY)
        or DEFAULT_STAGES[DEFAULT_STAGE_KEY]
    )


def financial_status_to_payment_status(financial_status):
    """Return the ``UF_CRM_PAYMENT_STATUS`` code for a Shopify financial status."""
    return FINANCIAL_STATUS_PAYMENT_CODES.get(
        _normalise(financial_status), DEFAULT_PAYMENT_CODE
    )


def source_name_to_source_id(source_name, config):
    """Return the Bitrix ``SOURCE_ID`` for an order's ``source_name``.

    Returns ``None`` when the source is unknown or its id is not configured.
    """
    key = SOURCE_NAME_KEYS.get(_normalise(source_name))
    if key is None:
        return None
    return config.sources.get(key) or None

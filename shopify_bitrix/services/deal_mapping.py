"""Deal mapping service — maps Shopify order payloads to Bitrix24 deal schema."""

from .status_mapping import (
    financial_status_to_payment_status,
    financial_status_to_stage_id,
    source_name_to_source_id,
)

# Bitrix treats PRODUCT_ID 0 as a free-form row identified only by PRODUCT_NAME.
UNMAPPED_PRODUCT_ID = 0

SHIPPING_ROW_NAME = "Shipping"

ORDER_ID_FIELD = "UF_SHOPIFY_ORDER_ID"


def _to_number(value, default=0.0):
    if value is None or value == "":
        return default
    return float(value)


def order_label(order):
    """Human-readable order reference for logs: name, falling back to id."""
    return order.get("name") or order.get("id")


def order_total(order):
    """Return the order total, preferring ``current_total_price``.

    ``current_total_price`` reflects edits and refunds; ``total_price`` is
    the amount at checkout.
    """
    value = order.get("current_total_price")
    if value is None or value == "":
        value = order.get("total_price")
    return _to_number(value)


def shipping_cost(order):
    """Return the shipping charged on the order.

    Uses ``total_shipping_price_set.shop_money.amount`` when Shopify sends
    it, else sums ``shipping_lines[].price``.
    """
    price_set = order.get("total_shipping_price_set") or {}
    amount = (price_set.get("shop_money") or {}).get("amount")
    if amount not in (None, ""):
        return _to_number(amount)
    return sum(
        _to_number(line.get("price"))
        for line in order.get("shipping_lines") or []
    )


def _build_line_item_row(line_item, config):
    sku = line_item.get("sku") or ""
    return {
        "PRODUCT_ID": config.sku_to_product_id.get(sku, UNMAPPED_PRODUCT_ID),
        "PRODUCT_NAME": line_item.get("title") or line_item.get("name") or sku,
        "PRICE": _to_number(line_item.get("price")),
        "QUANTITY": int(line_item.get("quantity") or 0),
    }


def map_order_to_product_rows(order, config):
    """Build the full product-row set for an order.

    One row per line item, plus a shipping row when the order has a
    shipping charge and ``config.shipping_product_id`` is set.  An empty
    list means the deal should have no rows.
    """
    rows = [
        _build_line_item_row(line_item, config)
        for line_item in order.get("line_items") or []
    ]

    cost = shipping_cost(order)
    if cost > 0 and config.shipping_product_id:
        rows.append(
            {
                "PRODUCT_ID": config.shipping_product_id,
                "PRODUCT_NAME": SHIPPING_ROW_NAME,
                "PRICE": cost,
                "QUANTITY": 1,
            }
        )

    return rows


def map_shopify_order_to_deal(order, config):
    """Map a Shopify order webhook payload to Bitrix24 deal fields and rows.

    Args:
        order: Shopify order webhook payload dict.
        config: :class:`~shopify_bitrix.conf.BitrixConfig` instance.

    Returns:
        tuple: ``(deal_fields, product_rows)``.  Both are fresh objects the
        caller may mutate.
    """
    financial_status = order.get("financial_status")

    deal_fields = {
        "TITLE": f"Shopify order {order_label(order)}",
        "CATEGORY_ID": config.category_id,
        "STAGE_ID": financial_status_to_stage_id(financial_status, config),
        "OPPORTUNITY": order_total(order),
        ORDER_ID_FIELD: str(order.get("id")),
        "UF_CRM_PAYMENT_STATUS": financial_status_to_payment_status(
            financial_status
        ),
    }

    if order.get("currency"):
        deal_fields["CURRENCY_ID"] = order["currency"]

    source_id = source_name_to_source_id(order.get("source_name"), config)
    if source_id:
        deal_fields["SOURCE_ID"] = source_id

    deal_fields.update(map_order_totals(order))

    return deal_fields, map_order_to_product_rows(order, config)


def map_order_totals(order):
    """Return discount and tax deal fields for the totals present on the order.

    A key that is present but ``null`` is sent as 0; an absent key is omitted.
    """
    fields = {}
    if "current_total_discounts" in order:
        fields["UF_SHOPIFY_TOTAL_DISCOUNT"] = _to_number(
            order["current_total_discounts"]
        )
    if "current_total_tax" in order:
        fields["UF_SHOPIFY_TOTAL_TAX"] = _to_number(order["current_total_tax"])
    return fields

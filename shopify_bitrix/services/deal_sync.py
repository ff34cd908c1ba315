"""Deal sync service — mirrors Shopify orders into Bitrix24 deals.

Each flow is a straight sequence of Bitrix24 calls.  Only the
``crm.deal.add`` call in :func:`create_deal_from_order` is fatal; the
contact upsert and product-row steps run through
:func:`~shopify_bitrix.utils.best_effort` and never abort the flow.
Nothing here retries: a failed best-effort step is lost for that delivery.
"""

import logging

from ..conf import get_bitrix_config
from ..utils import best_effort
from .bitrix_client import BitrixAPIError, get_bitrix_client
from .contact_sync import upsert_bitrix_contact
from .deal_mapping import (
    ORDER_ID_FIELD,
    map_order_to_product_rows,
    map_order_totals,
    map_shopify_order_to_deal,
    order_label,
    order_total,
)
from .status_mapping import (
    financial_status_to_payment_status,
    financial_status_to_stage_id,
)

logger = logging.getLogger(__name__)

DEAL_LOOKUP_SELECT = ["ID", "OPPORTUNITY", "STAGE_ID"]


def _resolve(client, config):
    config = config or get_bitrix_config()
    client = client or get_bitrix_client(config)
    return client, config


def find_deal_for_order(client, order_id):
    """Return the first deal whose ``UF_SHOPIFY_ORDER_ID`` matches, or ``None``."""
    response = client.list_deals({ORDER_ID_FIELD: str(order_id)}, DEAL_LOOKUP_SELECT)
    deals = response.get("result") or []
    return deals[0] if deals else None


def build_deal_update_fields(order, deal, config):
    """Build the sparse field map for an existing deal.

    ``OPPORTUNITY`` is included only when the amount changed.  Payment
    status and stage are always re-derived from ``financial_status``; the
    stage overwrites whatever the deal currently holds.  Discount and tax
    are sent whenever the order carries them.
    """
    fields = {}

    new_amount = order_total(order)
    if new_amount != float(deal.get("OPPORTUNITY") or 0):
        fields["OPPORTUNITY"] = new_amount

    financial_status = order.get("financial_status")
    fields["UF_CRM_PAYMENT_STATUS"] = financial_status_to_payment_status(
        financial_status
    )

    stage_id = financial_status_to_stage_id(financial_status, config)
    if stage_id:
        fields["STAGE_ID"] = stage_id

    fields.update(map_order_totals(order))
    return fields


def create_deal_from_order(order, client=None, config=None):
    """Create a Bitrix24 deal for a newly created Shopify order.

    Steps:
        1. Map the order to deal fields and product rows.
        2. Upsert the customer contact (non-blocking).
        3. ``crm.deal.add``, raising :class:`BitrixAPIError` on an empty result.
        4. ``crm.deal.productrows.set`` when there are rows (non-blocking).

    Returns:
        The Bitrix24 deal id.
    """
    client, config = _resolve(client, config)
    logger.info("Handling order created: %s", order_label(order))

    deal_fields, product_rows = map_shopify_order_to_deal(order, config)

    contact = best_effort("Contact upsert", upsert_bitrix_contact, client, order)
    if contact.ok and contact.value:
        deal_fields["CONTACT_ID"] = contact.value

    response = client.add_deal(deal_fields)
    deal_id = response.get("result")
    if not deal_id:
        raise BitrixAPIError(f"Failed to create deal: {response!r}", response=response)
    logger.info("Deal %s created for order %s", deal_id, order_label(order))

    if product_rows:
        rows = best_effort(
            f"Product rows for deal {deal_id}",
            client.set_deal_product_rows,
            deal_id,
            product_rows,
        )
        if rows.ok:
            logger.info(
                "Product rows set for deal %s: %d rows", deal_id, len(product_rows)
            )

    return deal_id


def update_deal_from_order(order, client=None, config=None):
    """Bring the Bitrix24 deal for an updated Shopify order up to date.

    Steps:
        1. Find the deal by ``UF_SHOPIFY_ORDER_ID``; missing deal is a no-op.
        2. ``crm.deal.update`` with the changed fields, skipped when empty.
        3. Replace the deal's product rows with the order's current rows,
           clearing them when the order has none (non-blocking).

    Returns:
        The Bitrix24 deal id, or ``None`` when no deal matches the order.
    """
    client, config = _resolve(client, config)
    logger.info("Handling order updated: %s", order_label(order))

    order_id = str(order.get("id"))
    deal = find_deal_for_order(client, order_id)
    if deal is None:
        logger.info("Deal not found for Shopify order %s", order_id)
        return None

    deal_id = deal["ID"]
    logger.info("Found deal %s for order %s", deal_id, order_id)

    fields = build_deal_update_fields(order, deal, config)
    if fields:
        client.update_deal(deal_id, fields)
        logger.info("Deal %s updated with fields: %s", deal_id, sorted(fields))
    else:
        logger.info("No fields to update for deal %s", deal_id)

    best_effort(
        f"Product rows update for deal {deal_id}",
        replace_deal_product_rows,
        client,
        deal_id,
        order,
        config,
    )
    return deal_id


def replace_deal_product_rows(client, deal_id, order, config):
    """Overwrite the deal's product rows with the order's current rows.

    An order without rows clears the deal's rows rather than leaving stale
    ones behind.
    """
    product_rows = map_order_to_product_rows(order, config)
    client.set_deal_product_rows(deal_id, product_rows)
    if product_rows:
        logger.info(
            "Product rows updated for deal %s: %d rows", deal_id, len(product_rows)
        )
    else:
        logger.info("Product rows cleared for deal %s", deal_id)
    return product_rows

import logging

from ..router import ORDER_CREATED_TOPIC, ORDER_UPDATED_TOPIC, register_handler
from ..services.deal_sync import create_deal_from_order, update_deal_from_order

logger = logging.getLogger(__name__)


def handle_order_created(order):
    """Handle orders/create webhook — create a deal in Bitrix24.

    Redelivered create events are not deduplicated; each delivery creates
    a deal.

    Returns:
        The new deal id.
    """
    deal_id = create_deal_from_order(order)
    logger.info("orders/create %s synced to deal %s", order.get("id"), deal_id)
    return deal_id


def handle_order_updated(order):
    """Handle orders/updated webhook — update the matching Bitrix24 deal.

    Returns:
        The deal id, or ``None`` when no deal carries this order's id.
    """
    deal_id = update_deal_from_order(order)
    if deal_id is None:
        logger.info("orders/updated %s matched no deal", order.get("id"))
    return deal_id


# ---------------------------------------------------------------------------
# Handler registration — called when this module is imported via apps.ready()
# ---------------------------------------------------------------------------
register_handler(ORDER_CREATED_TOPIC, handle_order_created)
register_handler(ORDER_UPDATED_TOPIC, handle_order_updated)

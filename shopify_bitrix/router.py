import logging

logger = logging.getLogger(__name__)

ORDER_CREATED_TOPIC = "orders/create"
ORDER_UPDATED_TOPIC = "orders/updated"

# Topics Shopify should deliver to the orders endpoint.
# Anything else that arrives is acknowledged and ignored.
ORDER_TOPICS = frozenset(
    {
        ORDER_CREATED_TOPIC,
        ORDER_UPDATED_TOPIC,
    }
)

# Registry mapping Shopify topic strings to handler callables.
# Handlers are registered by shopify_bitrix.handlers.orders at import
# time, triggered from the app's ready().
_topic_handlers = {}


def register_handler(topic, handler):
    """Register a handler callable ``handler(order)`` for a Shopify topic."""
    _topic_handlers[topic] = handler
    logger.debug("Registered handler for topic: %s", topic)


def get_handler(topic):
    """Return the handler callable for the given topic, or None."""
    return _topic_handlers.get(topic)

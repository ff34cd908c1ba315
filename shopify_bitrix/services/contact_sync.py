"""Contact sync service — finds or creates the Bitrix24 contact for an order's customer."""

import logging

logger = logging.getLogger(__name__)


def _customer_email(order):
    customer = order.get("customer") or {}
    return order.get("email") or order.get("contact_email") or customer.get("email")


def _customer_phone(order):
    customer = order.get("customer") or {}
    billing = order.get("billing_address") or {}
    return order.get("phone") or customer.get("phone") or billing.get("phone")


def _customer_names(order):
    """Return ``(first_name, last_name)`` from the customer, else billing address."""
    customer = order.get("customer") or {}
    billing = order.get("billing_address") or {}
    first_name = customer.get("first_name") or billing.get("first_name") or ""
    last_name = customer.get("last_name") or billing.get("last_name") or ""
    return first_name, last_name


def build_contact_fields(order):
    """Map the order's customer to Bitrix24 contact fields."""
    first_name, last_name = _customer_names(order)
    fields = {
        "NAME": first_name,
        "LAST_NAME": last_name,
        "OPENED": "Y",
    }
    email = _customer_email(order)
    if email:
        fields["EMAIL"] = [{"VALUE": email, "VALUE_TYPE": "WORK"}]
    phone = _customer_phone(order)
    if phone:
        fields["PHONE"] = [{"VALUE": phone, "VALUE_TYPE": "WORK"}]
    return fields


def find_bitrix_contact(client, order):
    """Return the id of an existing contact matching the order's e-mail or phone."""
    lookups = (("EMAIL", _customer_email(order)), ("PHONE", _customer_phone(order)))
    for field_name, value in lookups:
        if not value:
            continue
        response = client.list_contacts({field_name: value}, ["ID"])
        contacts = response.get("result") or []
        if contacts:
            return contacts[0]["ID"]
    return None


def upsert_bitrix_contact(client, order):
    """Find or create the Bitrix24 contact for the order's customer.

    Returns:
        The contact id, or ``None`` when the order carries neither an
        e-mail nor a phone number.  Client errors propagate.
    """
    if not _customer_email(order) and not _customer_phone(order):
        logger.info(
            "Order %s has no customer e-mail or phone; skipping contact",
            order.get("id"),
        )
        return None

    contact_id = find_bitrix_contact(client, order)
    if contact_id:
        logger.info("Matched contact %s for order %s", contact_id, order.get("id"))
        return contact_id

    response = client.add_contact(build_contact_fields(order))
    contact_id = response.get("result")
    logger.info("Created contact %s for order %s", contact_id, order.get("id"))
    return contact_id

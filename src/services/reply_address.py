"""Per-order reply addresses.

Every notification sent for an order carries a reply-to address that
embeds the order id, ``order-<order_id>@<reply domain>``. When the customer
replies, the inbound webhook recovers the order id from the recipient list
with order_id_from(). Order ids are restricted to ``[A-Za-z0-9_]`` so they
can never contain the ``-``/``@`` delimiters of the format.

Example:
    addr = address_for("quote_1001", "reply.printpalooza.com")
    # 'order-quote_1001@reply.printpalooza.com'
    order_id_from(addr)  # 'quote_1001'
"""

import random
import re
import time
from collections.abc import Iterable

from src.errors.domain import ValidationError

ADDRESS_PREFIX = "order-"
ORDER_ID_PREFIX = "quote_"

ORDER_ID_PATTERN = re.compile(r"[A-Za-z0-9_]+")

# Bare address, optionally wrapped in a display name: "Shop <order-x@d>".
_REPLY_ADDRESS_PATTERN = re.compile(
    r"^(?:[^<]*<)?\s*order-(?P<order_id>[A-Za-z0-9_]+)@(?P<domain>[A-Za-z0-9.-]+)\s*>?$",
    re.IGNORECASE,
)


def is_valid_order_id(order_id: str) -> bool:
    """Return True when order_id can be embedded in a reply address."""
    return bool(order_id) and ORDER_ID_PATTERN.fullmatch(order_id) is not None


def generate_order_id() -> str:
    """Generate a new order id, ``quote_<epoch millis><3 random digits>``.

    The random suffix keeps two quotes submitted in the same millisecond
    apart.
    """
    return f"{ORDER_ID_PREFIX}{int(time.time() * 1000)}{random.randint(0, 999):03d}"


def address_for(order_id: str, domain: str) -> str:
    """Build the reply-to address for an order.

    Args:
        order_id: Order identifier.
        domain: Reply domain (e.g. ``reply.printpalooza.com``).

    Returns:
        ``order-<order_id>@<domain>``.

    Raises:
        ValidationError: If order_id contains characters outside [A-Za-z0-9_].
    """
    if not is_valid_order_id(order_id):
        raise ValidationError(
            f"Order id {order_id!r} cannot be embedded in a reply address"
        )
    return f"{ADDRESS_PREFIX}{order_id}@{domain.lower()}"


def order_id_from(address: str | None, domain: str | None = None) -> str | None:
    """Recover the order id from a reply address.

    The ``order-`` prefix and the domain match case-insensitively; the
    captured order id is returned verbatim.

    Args:
        address: Recipient address, bare or ``Name <addr>`` form.
        domain: When given, the address must belong to this domain.

    Returns:
        The order id, or None if the address is not a reply address.
    """
    if not address:
        return None
    match = _REPLY_ADDRESS_PATTERN.match(address.strip())
    if match is None:
        return None
    if domain is not None and match.group("domain").lower() != domain.lower():
        return None
    return match.group("order_id")


def order_id_from_recipients(
    addresses: Iterable[str] | None, domain: str | None = None
) -> str | None:
    """Return the order id of the first recipient that is a reply address."""
    for address in addresses or ():
        order_id = order_id_from(address, domain)
        if order_id is not None:
            return order_id
    return None

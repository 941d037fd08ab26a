"""Actor identity and the role → permission table.

Every command handler calls :func:`authorize` before touching an aggregate.
Permissions are static. Ownership rules are resource checks attached to their
action: a sales representative may only review their own quotes, and a
customer may only patch or confirm delivery of an order they placed.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog

from labdesk.errors import Forbidden

logger = structlog.get_logger(__name__)


class Role(Enum):
    CLIENTE = "cliente"
    SOCIO = "socio"
    VENDEDOR = "vendedor"
    ADMIN = "admin"
    ROOT = "root"
    BODEGA = "bodega"
    USER = "user"


ELEVATED_ROLES = frozenset({Role.ADMIN.value, Role.ROOT.value})
CUSTOMER_ROLES = frozenset({Role.CLIENTE.value, Role.SOCIO.value, Role.USER.value})
STAFF_ROLES = frozenset({Role.VENDEDOR.value, Role.BODEGA.value}) | ELEVATED_ROLES
ALL_ROLES = frozenset(r.value for r in Role)
WAREHOUSE_ROLE = Role.BODEGA.value


@dataclass(frozen=True)
class Actor:
    """The authenticated caller of an operation."""

    user_id: str
    role: str
    email: str = ""
    name: str = ""

    @property
    def display_name(self) -> str:
        return self.name or self.email or self.user_id

    @property
    def is_elevated(self) -> bool:
        return self.role in ELEVATED_ROLES

    @property
    def is_warehouse(self) -> bool:
        return self.role == WAREHOUSE_ROLE

    @property
    def is_customer(self) -> bool:
        return self.role in CUSTOMER_ROLES


PERMISSIONS: dict[str, frozenset[str]] = {
    "quote:request": ALL_ROLES,
    "quote:price": frozenset({Role.VENDEDOR.value}) | ELEVATED_ROLES,
    "quote:vendor_review": frozenset({Role.VENDEDOR.value}) | ELEVATED_ROLES,
    "quote:admin_review": ELEVATED_ROLES,
    "quote:convert": CUSTOMER_ROLES | frozenset({Role.VENDEDOR.value}) | ELEVATED_ROLES,
    "quote:expire": frozenset({Role.VENDEDOR.value}) | ELEVATED_ROLES,
    "quote:read": CUSTOMER_ROLES | frozenset({Role.VENDEDOR.value}) | ELEVATED_ROLES,
    "quote:review_queue": frozenset({Role.VENDEDOR.value}) | ELEVATED_ROLES,
    "order:place": ALL_ROLES,
    "order:read": ALL_ROLES,
    "order:update": ALL_ROLES,
    "order:confirm_delivery": CUSTOMER_ROLES,
    "order:cancel": frozenset({Role.VENDEDOR.value}) | ELEVATED_ROLES,
    "preparation:open": frozenset({WAREHOUSE_ROLE}) | ELEVATED_ROLES,
    "preparation:progress": frozenset({WAREHOUSE_ROLE}) | ELEVATED_ROLES,
    "preparation:dispatch": frozenset({WAREHOUSE_ROLE}) | ELEVATED_ROLES,
    "preparation:reassign": frozenset({WAREHOUSE_ROLE}) | ELEVATED_ROLES,
    "warehouse:stats": frozenset({WAREHOUSE_ROLE}) | ELEVATED_ROLES,
}


def _assigned_representative(actor: Actor, quote: Any) -> None:
    if actor.role == Role.VENDEDOR.value and quote.assigned_sales_rep != actor.user_id:
        raise Forbidden({"actor": ["Only the assigned sales representative can review this quote"]})


def _quote_owner(actor: Actor, quote: Any) -> None:
    if actor.is_customer and quote.user_id and quote.user_id != actor.user_id:
        raise Forbidden({"actor": ["Only the customer who requested the quote can convert it"]})


def _quote_reader(actor: Actor, quote: Any) -> None:
    if actor.role == Role.VENDEDOR.value and quote.assigned_sales_rep != actor.user_id:
        raise Forbidden({"actor": ["Only the assigned sales representative can see this quote"]})
    if not actor.is_customer:
        return
    if quote.user_id:
        owned = quote.user_id == actor.user_id
    else:
        owned = bool(actor.email) and quote.customer_email.strip().lower() == actor.email.strip().lower()
    if not owned:
        raise Forbidden({"actor": ["Customers can only see their own quotes"]})


def _ordering_customer(actor: Actor, order: Any) -> None:
    matched = False

    if order.user_id:
        if order.user_id != actor.user_id:
            raise Forbidden({"actor": ["Only the customer who placed the order can act on it"]})
        matched = True

    if order.customer_email and actor.email:
        if order.customer_email.strip().lower() != actor.email.strip().lower():
            raise Forbidden({"actor": ["Order email does not match the customer"]})
        matched = True

    if not matched:
        raise Forbidden({"actor": ["Cannot verify that the order belongs to this customer"]})


def _own_order(actor: Actor, order: Any) -> None:
    if actor.is_customer:
        _ordering_customer(actor, order)


_RESOURCE_CHECKS: dict[str, Callable[[Actor, Any], None]] = {
    "quote:price": _assigned_representative,
    "quote:convert": _quote_owner,
    "quote:vendor_review": _assigned_representative,
    "quote:read": _quote_reader,
    "order:read": _own_order,
    "order:update": _own_order,
    "order:confirm_delivery": _ordering_customer,
}


def authorize(actor: Actor, action: str, resource: Any = None) -> None:
    """Raise ``Forbidden`` unless ``actor`` may perform ``action`` on ``resource``."""
    allowed = PERMISSIONS.get(action)
    if allowed is None:
        raise ValueError(f"Unknown action: {action}")

    if actor.role not in allowed:
        logger.info("Permission denied", action=action, actor_id=actor.user_id, role=actor.role)
        raise Forbidden({"actor": [f"Role '{actor.role}' is not allowed to perform {action}"]})

    check = _RESOURCE_CHECKS.get(action)
    if check is not None and resource is not None:
        check(actor, resource)


def actor_from(command) -> Actor:
    """Build the acting ``Actor`` from a command's ``actor_*`` fields."""
    return Actor(
        user_id=command.actor_id,
        role=command.actor_role,
        email=command.actor_email or "",
        name=command.actor_name or "",
    )

"""Customer record: the account a quote is requested for.

Only what the quote workflow needs is kept here: contact details and the
sales representative responsible for the account.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from labdesk.customer.events import CustomerRegistered, SalesRepAssigned
from labdesk.domain import labdesk


class CustomerStatus(Enum):
    ACTIVE = "activo"
    INACTIVE = "inactivo"
    SUSPENDED = "suspendido"


@labdesk.aggregate
class Customer:
    user_id = Identifier()
    email = String(required=True, max_length=254)
    name = String(required=True, max_length=200)
    phone = String(max_length=50)
    company = String(max_length=200)
    tax_id = String(max_length=50)
    assigned_sales_rep = Identifier()
    assigned_sales_rep_name = String(max_length=200)
    status = String(choices=CustomerStatus, default=CustomerStatus.ACTIVE.value)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def register(
        cls,
        email: str,
        name: str,
        user_id: str | None = None,
        phone: str | None = None,
        company: str | None = None,
        tax_id: str | None = None,
        assigned_sales_rep: str | None = None,
        assigned_sales_rep_name: str | None = None,
    ):
        now = datetime.now(UTC)
        customer = cls(
            user_id=user_id,
            email=email.strip().lower(),
            name=name,
            phone=phone,
            company=company,
            tax_id=tax_id,
            assigned_sales_rep=assigned_sales_rep,
            assigned_sales_rep_name=assigned_sales_rep_name,
            created_at=now,
            updated_at=now,
        )
        customer.raise_(
            CustomerRegistered(
                customer_id=str(customer.id),
                email=customer.email,
                name=name,
                assigned_sales_rep=assigned_sales_rep or "",
                registered_at=now,
            )
        )
        return customer

    def assign_sales_rep(self, rep_id: str, rep_name: str | None = None) -> None:
        now = datetime.now(UTC)
        previous = self.assigned_sales_rep
        self.assigned_sales_rep = rep_id
        self.assigned_sales_rep_name = rep_name
        self.updated_at = now
        self.raise_(
            SalesRepAssigned(
                customer_id=str(self.id),
                previous_sales_rep=previous or "",
                assigned_sales_rep=rep_id,
                assigned_at=now,
            )
        )


def find_sales_rep(customer_id: str | None = None, email: str | None = None) -> tuple[str | None, str | None]:
    """Resolve the sales representative for a quote's customer.

    Looks the customer up by id first, then by email. Returns
    ``(rep_id, rep_name)``, both ``None`` when nothing matches.
    """
    repo = current_domain.repository_for(Customer)
    customer = None
    if customer_id:
        try:
            customer = repo.get(customer_id)
        except ObjectNotFoundError:
            customer = None

    if customer is None and email:
        matches = repo._dao.query.filter(email=email.strip().lower()).all().items
        customer = matches[0] if matches else None

    if customer is None or not customer.assigned_sales_rep:
        return None, None
    return customer.assigned_sales_rep, customer.assigned_sales_rep_name

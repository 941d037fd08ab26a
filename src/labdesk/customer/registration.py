"""Customer registration and sales representative assignment."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from labdesk.customer.customer import Customer
from labdesk.domain import labdesk


@labdesk.command(part_of="Customer")
class RegisterCustomer:
    email = String(required=True, max_length=254)
    name = String(required=True, max_length=200)
    user_id = Identifier()
    phone = String(max_length=50)
    company = String(max_length=200)
    tax_id = String(max_length=50)
    assigned_sales_rep = Identifier()
    assigned_sales_rep_name = String(max_length=200)


@labdesk.command(part_of="Customer")
class AssignSalesRep:
    customer_id = Identifier(required=True)
    sales_rep_id = Identifier(required=True)
    sales_rep_name = String(max_length=200)


@labdesk.command_handler(part_of=Customer)
class CustomerRegistrationHandler:
    @handle(RegisterCustomer)
    def register_customer(self, command):
        customer = Customer.register(
            email=command.email,
            name=command.name,
            user_id=command.user_id,
            phone=command.phone,
            company=command.company,
            tax_id=command.tax_id,
            assigned_sales_rep=command.assigned_sales_rep,
            assigned_sales_rep_name=command.assigned_sales_rep_name,
        )
        current_domain.repository_for(Customer).add(customer)
        return str(customer.id)

    @handle(AssignSalesRep)
    def assign_sales_rep(self, command):
        repo = current_domain.repository_for(Customer)
        customer = repo.get(command.customer_id)
        customer.assign_sales_rep(command.sales_rep_id, command.sales_rep_name)
        repo.add(customer)

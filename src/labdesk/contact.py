"""Customer contact value objects: validated email address and phone number.

Quotes and orders carry the customer's contact details as plain strings;
:func:`validate_contact` runs them through these value objects on creation
and turns a rejected value into ``Unprocessable``.
"""

import re

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import String

from labdesk.domain import labdesk
from labdesk.errors import Unprocessable

MIN_NAME_LENGTH = 2
MIN_PHONE_LENGTH = 6


@labdesk.value_object
class EmailAddress:
    """A structurally valid email address: one @, sane local and domain parts."""

    address: String(required=True, max_length=254)

    @invariant.post
    def verify_email_address(self):
        email = self.address

        if any(ch.isspace() for ch in email):
            raise ValueError(f"Invalid email address: {email!r}")

        if email.count("@") != 1:
            raise ValueError(f"Invalid email address: {email!r}")

        local_part, domain_part = email.split("@", 1)

        if not local_part or local_part.startswith(".") or local_part.endswith("."):
            raise ValueError(f"Invalid email address: {email!r}")

        if not domain_part or domain_part.startswith(".") or domain_part.endswith("."):
            raise ValueError(f"Invalid email address: {email!r}")

        if "." not in domain_part or ".." in local_part or ".." in domain_part:
            raise ValueError(f"Invalid email address: {email!r}")

        for label in domain_part.split("."):
            if label.startswith("-") or label.endswith("-"):
                raise ValueError(f"Invalid email address: {email!r}")

        for forbidden in (";", ",", "(", ")", '"', ":", "<", ">", "[", "]", "\\"):
            if forbidden in email:
                raise ValueError(f"Invalid email address: {email!r}")


@labdesk.value_object
class PhoneNumber:
    """Digits, spaces, hyphens and parentheses with an optional leading +."""

    number: String(required=True, max_length=50)

    @invariant.post
    def validate_phone_format(self):
        number = self.number

        if len(number.strip()) < MIN_PHONE_LENGTH:
            raise ValueError(f"Phone number is too short: {number!r}")

        if not re.search(r"\d", number) or not re.match(r"^\+?[\d\s\-()]+$", number):
            raise ValueError(f"Invalid phone number: {number!r}")


def validate_contact(customer_name: str | None, customer_email: str | None, customer_phone: str | None = None) -> None:
    """Raise ``Unprocessable`` unless the customer's contact fields are usable.

    The name and email are required; the phone is optional but must be valid
    when given.
    """
    errors: dict[str, list[str]] = {}

    if not customer_name or len(customer_name.strip()) < MIN_NAME_LENGTH:
        errors["customer_name"] = [f"Customer name must have at least {MIN_NAME_LENGTH} characters"]

    if not customer_email:
        errors["customer_email"] = ["Customer email is required"]
    else:
        try:
            EmailAddress(address=customer_email)
        except (ValueError, ValidationError):
            errors["customer_email"] = [f"Invalid email address: {customer_email}"]

    if customer_phone:
        try:
            PhoneNumber(number=customer_phone)
        except (ValueError, ValidationError):
            errors["customer_phone"] = [f"Invalid phone number: {customer_phone}"]

    if errors:
        raise Unprocessable(errors)

"""Business failure types raised by the LabDesk domain.

All of them build on Protean's exception hierarchy so that callers already
catching ``ValidationError`` or ``ObjectNotFoundError`` keep working. Each
carries a ``messages`` dict keyed by the offending field (or ``_entity``).
"""

from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError


class NotFound(ObjectNotFoundError):
    """The requested quote, order, preparation or staff member does not exist."""


class InvalidState(ValidationError):
    """The operation is not legal from the entity's current status."""


class Forbidden(ValidationError):
    """The actor's role or ownership does not permit the operation."""


class Conflict(ValidationError):
    """Duplicate conversion, or no unique sequence number after the retry budget."""


class Unprocessable(ValidationError):
    """A required collection or total is missing or empty."""


class Unavailable(InvalidOperationError):
    """No eligible warehouse operator is available for assignment."""


def error_messages(exc: Exception) -> dict:
    """Normalise a domain exception into a ``{field: [messages]}`` dict."""
    messages = getattr(exc, "messages", None)
    if isinstance(messages, dict):
        return messages
    if messages:
        return {"_entity": [str(messages)]}
    return {"_entity": [str(exc)]}


def describe(exc: Exception) -> str:
    """One-line, human-readable summary of a domain exception."""
    parts = []
    for messages in error_messages(exc).values():
        if isinstance(messages, list | tuple):
            parts.extend(str(message) for message in messages)
        else:
            parts.append(str(messages))
    return "; ".join(parts)

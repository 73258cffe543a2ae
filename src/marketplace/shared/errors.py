"""Marketplace error taxonomy.

Every error is a protean ``ValidationError`` so domain code raises them the
same way it raises field validation failures, with a ``{field: [message]}``
payload. ``status_code`` is what the API layer answers with.
"""

from protean.exceptions import ValidationError


class MarketplaceError(ValidationError):
    status_code = 400
    field = "error"

    def __init__(self, message: str, field: str | None = None):
        self.message = message
        super().__init__({field or self.field: [message]})


class InvalidInput(MarketplaceError):
    field = "input"


class NotFoundError(MarketplaceError):
    status_code = 404
    field = "id"


class UnauthorizedError(MarketplaceError):
    status_code = 401
    field = "auth"


class ForbiddenError(MarketplaceError):
    status_code = 403
    field = "auth"


class DuplicateError(MarketplaceError):
    field = "id"


class ProductUnavailable(MarketplaceError):
    field = "product_id"


class BelowMinimumOrder(MarketplaceError):
    field = "quantity"


class InsufficientStock(MarketplaceError):
    field = "quantity"


class InvalidTransition(MarketplaceError):
    status_code = 403
    field = "status"


class NotCancellable(InvalidTransition):
    status_code = 400


class AlreadyTerminal(InvalidTransition):
    status_code = 400


def error_message(exc: Exception) -> str:
    """First human-readable message carried by a protean error."""
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    messages = getattr(exc, "messages", None)
    if isinstance(messages, dict):
        for value in messages.values():
            if isinstance(value, list | tuple) and value:
                return str(value[0])
            if value:
                return str(value)
    return str(exc) or exc.__class__.__name__

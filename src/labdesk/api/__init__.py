"""LabDesk API package."""

from labdesk.api.errors import register_error_handlers
from labdesk.api.routes import notification_router, order_router, quote_router, warehouse_router

__all__ = ["quote_router", "order_router", "warehouse_router", "notification_router", "register_error_handlers"]

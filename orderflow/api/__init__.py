"""
API — FastAPI surface over OrderService.

    app = create_app(service)
    app = create_app_from_settings(Settings.from_env())
"""

from orderflow.api._app import ROUTES, create_app, create_app_from_settings, get_service
from orderflow.api._schemas import (
    STATUS_CODES,
    CreateWithPaymentIn,
    CreateWithPaymentOut,
    OrderOut,
    UpdateStatusIn,
    UpdateStatusOut,
)

__all__ = (
    "ROUTES",
    "create_app",
    "create_app_from_settings",
    "get_service",
    "STATUS_CODES",
    "CreateWithPaymentIn",
    "CreateWithPaymentOut",
    "OrderOut",
    "UpdateStatusIn",
    "UpdateStatusOut",
)

"""
FastAPI surface.

Thin mapping from HTTP to OrderService; every decision lives in the core.
Authentication is upstream: the caller's id arrives in the X-User-Id header.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Annotated

import fastapi
from fastapi import Depends, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from kungfu import Ok, Error

from orderflow.bootstrap import build
from orderflow.config import Settings
from orderflow.errors import InvalidTransition
from orderflow.api._schemas import (
    CreateWithPaymentIn,
    CreateWithPaymentOut,
    ErrorOut,
    OrderOut,
    UpdateStatusIn,
    UpdateStatusOut,
)
from orderflow.log import configure, get_logger
from orderflow.orchestrator import OrderService

logger = get_logger("api")


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorOut(message=message).model_dump(mode="json"),
    )


def get_service(request: Request) -> OrderService:
    return request.app.state.service


# ═══════════════════════════════════════════════════════════════════════════════
# Routes
# ═══════════════════════════════════════════════════════════════════════════════


async def create_with_payment(
    body: CreateWithPaymentIn,
    service: Annotated[OrderService, Depends(get_service)],
    x_user_id: Annotated[int | None, Header()] = None,
    idempotency_key: Annotated[str | None, Header()] = None,
) -> JSONResponse:
    if x_user_id is None:
        return _error(401, "not authenticated")

    result = await service.create_with_payment(body.to_domain(x_user_id, idempotency_key))
    status_code, out = CreateWithPaymentOut.from_domain(result)
    return JSONResponse(status_code=status_code, content=out.model_dump(mode="json"))


async def update_status(
    body: UpdateStatusIn,
    service: Annotated[OrderService, Depends(get_service)],
    x_user_id: Annotated[int | None, Header()] = None,
) -> JSONResponse:
    if x_user_id is None:
        return _error(401, "not authenticated")

    match await service.update_order_status(body.order_id, body.status):
        case Ok(True):
            out = UpdateStatusOut(success=True, message="order status updated")
            return JSONResponse(status_code=200, content=out.model_dump(mode="json"))
        case Ok(False):
            return _error(404, "order not found")
        case Error(InvalidTransition() as e):
            return _error(409, e.message)
        case Error(e):
            logger.error("status update of order %s failed: %s", body.order_id, e.message)
            return _error(500, "order status could not be updated")


async def orders_for_user(
    service: Annotated[OrderService, Depends(get_service)],
    x_user_id: Annotated[int | None, Header()] = None,
) -> JSONResponse:
    if x_user_id is None:
        return _error(401, "not authenticated")

    match await service.get_orders_for_user(x_user_id):
        case Ok(views):
            content = [OrderOut.from_domain(v).model_dump(mode="json") for v in views]
            return JSONResponse(status_code=200, content=content)
        case Error(e):
            logger.error("orders of user %s not loaded: %s", x_user_id, e.message)
            return _error(500, "orders could not be loaded")


async def order_by_id(
    order_id: int,
    service: Annotated[OrderService, Depends(get_service)],
    x_user_id: Annotated[int | None, Header()] = None,
) -> JSONResponse:
    if x_user_id is None:
        return _error(401, "not authenticated")

    match await service.get_order(order_id):
        case Ok(view) if view is not None and view.user_id == x_user_id:
            return JSONResponse(
                status_code=200,
                content=OrderOut.from_domain(view).model_dump(mode="json"),
            )
        case Ok(_):
            return _error(404, "order not found")
        case Error(e):
            logger.error("order %s not loaded: %s", order_id, e.message)
            return _error(500, "order could not be loaded")


ROUTES = (
    ("POST", "/orders/create-with-payment", create_with_payment),
    ("POST", "/orders/update-status", update_status),
    # before /orders/{order_id} so "user" is not parsed as an id
    ("GET", "/orders/user", orders_for_user),
    ("GET", "/orders/{order_id}", order_by_id),
)


# ═══════════════════════════════════════════════════════════════════════════════
# Application
# ═══════════════════════════════════════════════════════════════════════════════


async def _bad_request(request: Request, exc: Exception) -> JSONResponse:
    return _error(400, "invalid request")


def _mount(app: fastapi.FastAPI) -> fastapi.FastAPI:
    for method, path, handler in ROUTES:
        getattr(app, method.lower())(path)(handler)
    app.add_exception_handler(RequestValidationError, _bad_request)
    return app


def create_app(service: OrderService) -> fastapi.FastAPI:
    """App around an already-built service (tests, embedding)."""
    app = fastapi.FastAPI(title="orderflow")
    app.state.service = service
    return _mount(app)


def create_app_from_settings(settings: Settings | None = None) -> fastapi.FastAPI:
    """
    App that opens the database on startup.

        app = create_app_from_settings()   # reads ORDERFLOW_* env vars
    """
    settings = settings if settings is not None else Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: fastapi.FastAPI) -> AsyncIterator[None]:
        configure(settings.log_level)
        wiring = await build(settings)
        app.state.service = wiring.service
        try:
            yield
        finally:
            await wiring.close()

    return _mount(fastapi.FastAPI(title="orderflow", lifespan=lifespan))


__all__ = ("ROUTES", "get_service", "create_app", "create_app_from_settings")

"""Order routes for owners and admins.

The ``/orders/admin/...`` routes are declared before ``/orders/{order_id}`` so
that the literal ``admin`` segment is never captured as an order id.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from hospital_meal_service.auth.api_dependencies import get_current_identity, require_admin
from hospital_meal_service.auth.token_service import Identity
from hospital_meal_service.handlers.service_dependencies import get_order_service
from hospital_meal_service.models.order_models import (
    OrderCreateRequest,
    OrderMutationResponse,
    OrderStats,
    OrderView,
    StatusUpdateRequest,
)
from hospital_meal_service.services.order_service import OrderService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["Orders"])

CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]
AdminIdentity = Annotated[Identity, Depends(require_admin)]
Orders = Annotated[OrderService, Depends(get_order_service)]


@router.get("/admin/all", response_model=list[OrderView])
async def list_all_orders(
    _admin: AdminIdentity,
    orders: Orders,
    status: str | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1)] = 50,
) -> list[OrderView]:
    """All orders, newest first, with owner details."""
    return await orders.list_all_orders(status=status, page=page, limit=limit)


@router.get("/admin/stats", response_model=OrderStats)
async def get_order_stats(_admin: AdminIdentity, orders: Orders) -> OrderStats:
    """Dashboard counters."""
    return await orders.get_order_stats()


@router.patch("/admin/{order_id}/status", response_model=OrderMutationResponse)
async def update_order_status(
    order_id: str,
    body: StatusUpdateRequest,
    admin: AdminIdentity,
    orders: Orders,
) -> OrderMutationResponse:
    """Move an order along its lifecycle.

    Returns:
        Success envelope with the updated order
    """
    logger.info(f"Admin {admin.user_id} requested status {body.status} for order {order_id}")
    order = await orders.transition_status(order_id, body.status)
    return OrderMutationResponse(message="Order status updated successfully", order=order)


@router.post("", response_model=OrderMutationResponse, status_code=201)
async def create_order(
    body: OrderCreateRequest,
    identity: CurrentIdentity,
    orders: Orders,
) -> OrderMutationResponse:
    """Place an order for the caller."""
    order = await orders.create_order(identity, body)
    return OrderMutationResponse(message="Order created successfully", order=order)


@router.get("", response_model=list[OrderView])
async def list_my_orders(identity: CurrentIdentity, orders: Orders) -> list[OrderView]:
    """Caller's orders, newest first."""
    return await orders.list_orders_for_user(identity)


@router.get("/{order_id}", response_model=OrderView)
async def get_my_order(order_id: str, identity: CurrentIdentity, orders: Orders) -> OrderView:
    return await orders.get_order_for_user(identity, order_id)


@router.patch("/{order_id}/cancel", response_model=OrderMutationResponse)
async def cancel_my_order(order_id: str, identity: CurrentIdentity, orders: Orders) -> OrderMutationResponse:
    """Owner cancellation with refund of completed payments."""
    order = await orders.cancel_order(identity, order_id)
    return OrderMutationResponse(message="Order cancelled successfully", order=order)

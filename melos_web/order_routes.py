"""
FastAPI routes for orders. Both require a bearer token.

Prefix: /api
"""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, status

from melos.app import MelosApp
from .auth_middleware import get_melos, require_token
from .schemas import ErrorResponse, OrderCreateRequest, OrderCreateResponse

router = APIRouter(prefix="/api", tags=["orders"])


@router.post(
    "/orders",
    response_model=OrderCreateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)
def create_order(
    body: OrderCreateRequest,
    token: str = Depends(require_token),
    melos: MelosApp = Depends(get_melos),
) -> OrderCreateResponse:
    """Create an order owned by the token's user."""
    result = melos.order_workflow.create_order(
        token, body.items, body.customer_info, body.total_amount
    )
    return OrderCreateResponse(message="Order saved successfully", order_id=result["order_id"])


@router.get(
    "/users/{user_id}/orders",
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
def order_history(
    user_id: str,
    token: str = Depends(require_token),
    melos: MelosApp = Depends(get_melos),
) -> List[Dict[str, Any]]:
    """Order history for the caller, newest first. Other users' ids get 403."""
    orders = melos.order_workflow.get_history(token, user_id)
    return [order.to_public() for order in orders]

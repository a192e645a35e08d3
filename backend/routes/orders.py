"""
Order endpoints — public checkout and thank-you page lookup.
"""

import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import client_context
from domain.responses import ORDER_ERROR_RESPONSES, StandardErrorResponse, success_response
from domain.tracking import ClientContext
from models import CreateOrderRequest, OrderLookupRequest
from services import order_service

logger = logging.getLogger(__name__)
router = APIRouter(tags=["orders"])


@router.post(
    "/orders",
    status_code=status.HTTP_200_OK,
    responses=ORDER_ERROR_RESPONSES,
)
async def create_order(
    body: CreateOrderRequest,
    context: ClientContext = Depends(client_context),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a COD order from a checkout submission.

    Prices, shipping and totals are computed server-side; any price sent by
    the browser is ignored. Conversion tracking runs after the response.
    """
    result = await order_service.create_order(db, body, context)
    return success_response(result)


@router.post(
    "/orders/lookup",
    responses={404: {"model": StandardErrorResponse, "description": "Unknown order or token"}},
)
async def lookup_order(
    body: OrderLookupRequest,
    db: AsyncSession = Depends(get_db),
):
    """Order summary for the thank-you page (requires the order's public token)."""
    order = await order_service.get_public_order(db, body.order_id, body.public_token)
    return success_response(order)

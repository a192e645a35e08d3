"""
Cart draft endpoint — saves the checkout form's cart for abandoned-cart follow-up.
"""

import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from domain.responses import success_response
from models import CartDraftRequest
from services import cart_service
from utils.validators import is_valid_phone

logger = logging.getLogger(__name__)
router = APIRouter(tags=["carts"])


@router.put("/carts")
async def save_cart(body: CartDraftRequest, db: AsyncSession = Depends(get_db)):
    # Partially typed numbers are not worth keeping
    phone = body.phone if is_valid_phone(body.phone) else None
    cart = await cart_service.save_draft(
        db,
        cart_id=body.cart_id,
        phone=phone,
        items=body.items,
        total_value=body.total_value,
    )
    await db.commit()
    return success_response({"cart_id": cart.id})

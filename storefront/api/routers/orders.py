# storefront/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from storefront.api.deps import require_user
from storefront.domain.schemas import Order, OrderDetailOut
from storefront.services.storefront_session import StorefrontSession

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("/", response_model=List[Order])
def list_orders(sf: StorefrontSession = Depends(require_user)):
    orders = sf.orders.list_orders()
    if orders is None:
        notes = sf.notifier.drain()
        return JSONResponse(
            status_code=502,
            content={
                "detail": notes[-1].description if notes else "Failed to load orders",
                "notifications": [n.model_dump() for n in notes],
            },
        )
    return orders


@router.get("/{order_id}", response_model=OrderDetailOut)
def get_order(order_id: str, sf: StorefrontSession = Depends(require_user)):
    """
    Order with its lines; other users' orders read as not found.
    """
    detail = sf.orders.get_order(order_id)
    if not detail:
        raise HTTPException(status_code=404, detail="Order not found")
    return detail

# storefront/api/routers/checkout.py
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, RedirectResponse

from storefront.api.deps import require_user
from storefront.domain.errors import EmptyCartError
from storefront.domain.schemas import CheckoutSummaryOut, OrderPlacedOut, ShippingAddress
from storefront.services.storefront_session import StorefrontSession

router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.get("/", response_model=CheckoutSummaryOut)
def checkout_summary(sf: StorefrontSession = Depends(require_user)):
    try:
        return sf.checkout.summary()
    except EmptyCartError:
        return RedirectResponse("/cart", status_code=303)


@router.post("/", response_model=OrderPlacedOut, status_code=201)
def place_order(address: ShippingAddress, sf: StorefrontSession = Depends(require_user)):
    """
    Places the order for the current cart.
    Empty cart never reaches order creation, the client is sent back to /cart.
    """
    try:
        order_id = sf.checkout.place_order(address)
    except EmptyCartError:
        return RedirectResponse("/cart", status_code=303)

    if order_id is None:
        notes = sf.notifier.drain()
        return JSONResponse(
            status_code=502,
            content={
                "detail": notes[-1].description if notes else "Failed to place order",
                "notifications": [n.model_dump() for n in notes],
            },
        )

    return OrderPlacedOut(
        order_id=order_id,
        redirect_to=f"/orders/{order_id}",
        notifications=sf.notifier.drain(),
    )

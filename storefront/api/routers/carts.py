#storefront/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException

from storefront.api.deps import get_storefront, require_user
from storefront.domain.schemas import CartItemIn, CartOut, QuantityIn
from storefront.services.storefront_session import StorefrontSession

router = APIRouter(prefix="/cart", tags=["cart"])


def cart_out(sf: StorefrontSession, ok: bool = True) -> CartOut:
    cart = sf.cart
    return CartOut(
        ok=ok,
        loading=cart.loading,
        items=list(cart.lines),
        count=cart.cart_count(),
        subtotal=cart.cart_total(),
        notifications=sf.notifier.drain(),
    )


@router.get("/", response_model=CartOut)
def get_cart(sf: StorefrontSession = Depends(require_user)):
    return cart_out(sf)


@router.post("/items", response_model=CartOut)
def add_item(payload: CartItemIn, sf: StorefrontSession = Depends(get_storefront)):
    #not gated by require_user: the cart itself reports the missing sign-in
    ok = sf.cart.add_to_cart(payload.product_id, payload.quantity)
    if not ok and not sf.session.user_id:
        notes = sf.notifier.drain()
        raise HTTPException(
            status_code=401,
            detail=notes[-1].description if notes else "Authentication required",
        )
    return cart_out(sf, ok)


@router.patch("/items/{product_id}", response_model=CartOut)
def update_item(
    product_id: str,
    payload: QuantityIn,
    sf: StorefrontSession = Depends(require_user),
):
    ok = sf.cart.update_quantity(product_id, payload.quantity)
    return cart_out(sf, ok)


@router.delete("/items/{product_id}", response_model=CartOut)
def remove_item(product_id: str, sf: StorefrontSession = Depends(require_user)):
    ok = sf.cart.remove_from_cart(product_id)
    return cart_out(sf, ok)


@router.delete("/", response_model=CartOut)
def clear_cart(sf: StorefrontSession = Depends(require_user)):
    ok = sf.cart.clear_cart()
    return cart_out(sf, ok)

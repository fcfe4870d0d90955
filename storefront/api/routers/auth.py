# storefront/api/routers/auth.py
from fastapi import APIRouter, Depends, HTTPException

from storefront.api.deps import get_registry, get_session_id, get_storefront
from storefront.domain.errors import RemoteError
from storefront.domain.schemas import SessionOut, SignInIn
from storefront.services.storefront_session import SessionRegistry, StorefrontSession

router = APIRouter(prefix="/auth", tags=["auth"])


def _session_out(sf: StorefrontSession) -> SessionOut:
    identity = sf.session.identity
    return SessionOut(
        signed_in=identity is not None,
        user_id=identity.user_id if identity else None,
        email=identity.email if identity else None,
        cart_count=sf.cart.cart_count(),
        notifications=sf.notifier.drain(),
    )


@router.get("/session", response_model=SessionOut)
def get_session(sf: StorefrontSession = Depends(get_storefront)):
    return _session_out(sf)


@router.post("/sign-in", response_model=SessionOut)
def sign_in(payload: SignInIn, sf: StorefrontSession = Depends(get_storefront)):
    try:
        sf.session.sign_in(payload.email, payload.password)
    except RemoteError as e:
        if e.status in (400, 401, 403):
            raise HTTPException(status_code=401, detail="Invalid email or password")
        raise HTTPException(status_code=502, detail="Sign-in is unavailable, please try again")
    return _session_out(sf)


@router.post("/sign-out", response_model=SessionOut)
def sign_out(
    session_id: str = Depends(get_session_id),
    sf: StorefrontSession = Depends(get_storefront),
    registry: SessionRegistry = Depends(get_registry),
):
    sf.session.sign_out()
    out = _session_out(sf)
    #the cookie stays, its next request starts a fresh session
    registry.discard(session_id)
    return out

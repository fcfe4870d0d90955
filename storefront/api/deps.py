# storefront/api/deps.py
from uuid import uuid4

from fastapi import Depends, HTTPException, Request, Response

from storefront.services.storefront_session import SessionRegistry, StorefrontSession
from storefront.utils.settings import SESSION_COOKIE_NAME


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


def get_session_id(request: Request, response: Response) -> str:
    session_id = request.cookies.get(SESSION_COOKIE_NAME)
    if not session_id:
        session_id = uuid4().hex
        response.set_cookie(SESSION_COOKIE_NAME, session_id, httponly=True, samesite="lax")
    return session_id


def get_storefront(
    session_id: str = Depends(get_session_id),
    registry: SessionRegistry = Depends(get_registry),
) -> StorefrontSession:
    return registry.get_or_create(session_id)


def require_user(sf: StorefrontSession = Depends(get_storefront)) -> StorefrontSession:
    if not sf.session.user_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    return sf

# storefront/api/__init__.py
from fastapi import FastAPI

from storefront.api.routers import auth, carts, checkout, health, orders, products
from storefront.remote.auth import AuthClient
from storefront.services.lock_service import LockService
from storefront.services.storefront_session import SessionRegistry, StorefrontSession


def default_registry() -> SessionRegistry:
    auth_client = AuthClient()
    #one redis connection pool shared by all sessions
    lock_service = LockService()
    return SessionRegistry(lambda: StorefrontSession.build(auth_client, lock_service))


def create_app(registry: SessionRegistry | None = None) -> FastAPI:
    app = FastAPI(
        title="Storefront",
        version="1.0.0",
    )
    app.state.registry = registry if registry is not None else default_registry()

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(products.router)
    app.include_router(carts.router)
    app.include_router(checkout.router)
    app.include_router(orders.router)

    return app

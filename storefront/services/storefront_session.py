# storefront/services/storefront_session.py
import threading
import time
from collections import OrderedDict
from typing import Callable

import requests

from storefront.remote.auth import AuthClient
from storefront.remote.client import RemoteClient
from storefront.repos.cart_repo import CartRepo
from storefront.repos.order_repo import OrderRepo
from storefront.repos.product_repo import ProductRepo
from storefront.services.cart_service import CartStateManager
from storefront.services.catalog_service import CatalogService
from storefront.services.checkout_service import CheckoutService
from storefront.services.lock_service import LockService
from storefront.services.notification_service import NotificationService, Notifier
from storefront.services.order_service import OrderService
from storefront.services.session_provider import SessionProvider
from storefront.utils.settings import SESSION_IDLE_SECONDS, SESSION_MAX_COUNT
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class StorefrontSession:
    """
    Everything one browser session owns: identity, toasts, cart projection
    and the services reading or writing them. Nothing here is shared
    between sessions except the lock backend.
    """

    def __init__(
        self,
        session: SessionProvider,
        cart_repo: CartRepo,
        order_repo: OrderRepo,
        product_repo: ProductRepo,
        lock_service: LockService,
        notification_service: NotificationService | None = None,
        http: requests.Session | None = None,
    ):
        self.http = http
        self.session = session
        self.notifier = Notifier()
        self.cart = CartStateManager(cart_repo, session, self.notifier, lock_service)
        self.checkout = CheckoutService(
            order_repo,
            self.cart,
            session,
            self.notifier,
            lock_service,
            notification_service=notification_service,
        )
        self.orders = OrderService(order_repo, session, self.notifier)
        self.catalog = CatalogService(product_repo, self.notifier)

    @classmethod
    def build(cls, auth_client: AuthClient, lock_service: LockService) -> "StorefrontSession":
        session = SessionProvider(auth_client)
        client = RemoteClient(token_provider=lambda: session.access_token)
        return cls(
            session,
            CartRepo(client),
            OrderRepo(client),
            ProductRepo(client),
            lock_service,
            http=client.http,
        )

    def close(self) -> None:
        if self.http is not None:
            self.http.close()


class SessionRegistry:
    """
    Storefront sessions keyed by the session cookie value, least recently
    used first. Sessions idle for longer than idle_seconds are dropped, and
    the oldest are dropped once there are more than max_sessions.
    """

    def __init__(
        self,
        factory: Callable[[], StorefrontSession],
        idle_seconds: float = SESSION_IDLE_SECONDS,
        max_sessions: int = SESSION_MAX_COUNT,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.factory = factory
        self.idle_seconds = idle_seconds
        self.max_sessions = max_sessions
        self.clock = clock
        self._sessions: OrderedDict[str, tuple[StorefrontSession, float]] = OrderedDict()
        self._lock = threading.Lock()

    def get_or_create(self, session_id: str) -> StorefrontSession:
        with self._lock:
            now = self.clock()
            self._expire(now)

            entry = self._sessions.pop(session_id, None)
            if entry is None:
                sf = self.factory()
                logger.info(f"Storefront session {session_id[:8]} opened")
            else:
                sf = entry[0]
            self._sessions[session_id] = (sf, now)

            while len(self._sessions) > self.max_sessions:
                old_id, (old, _) = self._sessions.popitem(last=False)
                logger.info(f"Storefront session {old_id[:8]} evicted, over {self.max_sessions} sessions")
                old.close()
            return sf

    def discard(self, session_id: str) -> None:
        with self._lock:
            entry = self._sessions.pop(session_id, None)
        if entry is not None:
            logger.info(f"Storefront session {session_id[:8]} closed")
            entry[0].close()

    def _expire(self, now: float) -> None:
        #oldest first, stop at the first one still in use
        while self._sessions:
            session_id, (sf, last_seen) = next(iter(self._sessions.items()))
            if now - last_seen < self.idle_seconds:
                break
            del self._sessions[session_id]
            logger.info(f"Storefront session {session_id[:8]} expired")
            sf.close()

    def __len__(self) -> int:
        return len(self._sessions)

from contextlib import contextmanager
from decimal import Decimal
from uuid import uuid4

from redis.exceptions import RedisError

from storefront.domain import pricing
from storefront.domain.errors import RemoteError
from storefront.domain.schemas import CartLine, Identity
from storefront.repos.cart_repo import CartRepo
from storefront.services.lock_service import LockService, cart_line_key
from storefront.services.notification_service import Notifier
from storefront.services.session_provider import SessionProvider
from storefront.utils.settings import INFLIGHT_LOCK_TTL_SECONDS, INFLIGHT_WAIT_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CartStateManager:
    """
    Local projection of the signed-in user's cart.

    Commands (add, update, remove, clear) write to the remote cart_items
    table first and then re-read the whole cart from it; clear is the one
    exception, its end state is known so the projection is emptied directly.
    Queries (lines, total, count) only read the projection.

    add/update/remove of one (user, product) pair run under an in-flight
    lock held across read -> write -> reload. Add re-reads the remote cart
    once it holds the lock, so a second add from this or any other session
    of the same user sees the quantity the first one wrote.
    """

    def __init__(
        self,
        repo: CartRepo,
        session: SessionProvider,
        notifier: Notifier,
        lock_service: LockService,
        lock_ttl: int = INFLIGHT_LOCK_TTL_SECONDS,
        lock_wait: float = INFLIGHT_WAIT_SECONDS,
    ):
        self.repo = repo
        self.session = session
        self.notifier = notifier
        self.lock_service = lock_service
        self.lock_ttl = lock_ttl
        self.lock_wait = lock_wait

        #replaced wholesale, never mutated in place
        self._lines: tuple[CartLine, ...] = ()
        self.loading = False

        session.subscribe(self.load)
        if session.identity is not None:
            self.load(session.identity)

    #queries
    @property
    def lines(self) -> tuple[CartLine, ...]:
        return self._lines

    def is_empty(self) -> bool:
        return not self._lines

    def find_line(self, product_id: str) -> CartLine | None:
        return next((l for l in self._lines if l.product_id == product_id), None)

    def cart_total(self) -> Decimal:
        return pricing.subtotal(self._lines)

    def cart_count(self) -> int:
        return pricing.item_count(self._lines)

    #sync with remote
    def load(self, identity: Identity | None) -> None:
        if identity is None:
            self._lines = ()
            return

        self.loading = True
        try:
            lines = self.repo.fetch_lines(identity.user_id)
        except RemoteError as e:
            #no toast here, the previous projection stays
            logger.error(f"Error fetching cart items for user {identity.user_id}: {e}")
            return
        finally:
            self.loading = False

        #the user may have signed out while the fetch was running
        if self.session.user_id != identity.user_id:
            logger.info(f"Dropping cart fetched for {identity.user_id}, identity changed")
            return

        self._lines = tuple(lines)

    def reload(self) -> None:
        self.load(self.session.identity)

    #commands
    def add_to_cart(self, product_id: str, quantity: int = 1) -> bool:
        user_id = self.session.user_id
        if not user_id:
            self.notifier.error("Authentication required", "Please sign in to add items to your cart.")
            return False

        with self._inflight(user_id, product_id, "Failed to add item to cart.") as acquired:
            if not acquired:
                return False

            #other sessions of this user may have written since our last load
            if not self._refresh(user_id):
                self.notifier.error("Error", "Failed to add item to cart.")
                return False

            existing = self.find_line(product_id)
            if existing:
                logger.info(
                    f"Product {product_id} already in cart, quantity "
                    f"{existing.quantity} -> {existing.quantity + quantity}"
                )
                return self._update(user_id, product_id, existing.quantity + quantity)

            try:
                self.repo.insert_line(user_id, product_id, quantity)
            except RemoteError as e:
                logger.error(f"Failed to add product {product_id} for user {user_id}: {e}")
                self.notifier.error("Error", "Failed to add item to cart.")
                return False

            logger.info(f"Product {product_id} x{quantity} added to cart of user {user_id}")
            self.notifier.success("Added to cart", "Item has been added to your cart.")
            self.reload()
            return True

    def update_quantity(self, product_id: str, quantity: int) -> bool:
        user_id = self.session.user_id
        if not user_id:
            return False

        with self._inflight(user_id, product_id, "Failed to update cart item.") as acquired:
            if not acquired:
                return False
            return self._update(user_id, product_id, quantity)

    def remove_from_cart(self, product_id: str) -> bool:
        user_id = self.session.user_id
        if not user_id:
            return False

        with self._inflight(user_id, product_id, "Failed to remove item from cart.") as acquired:
            if not acquired:
                return False
            return self._remove(user_id, product_id)

    def clear_cart(self) -> bool:
        user_id = self.session.user_id
        if not user_id:
            return False

        try:
            self.repo.delete_all(user_id)
        except RemoteError as e:
            logger.error(f"Failed to clear cart of user {user_id}: {e}")
            self.notifier.error("Error", "Failed to clear cart.")
            return False

        logger.info(f"Cart of user {user_id} cleared")
        self._lines = ()
        return True

    #lock must be held by the caller
    def _update(self, user_id: str, product_id: str, quantity: int) -> bool:
        if quantity <= 0:
            return self._remove(user_id, product_id)

        #relies on one row per (user, product), matching rows are not counted
        try:
            self.repo.update_quantity(user_id, product_id, quantity)
        except RemoteError as e:
            logger.error(f"Failed to set quantity of {product_id} to {quantity} for user {user_id}: {e}")
            self.notifier.error("Error", "Failed to update cart item.")
            return False

        self.reload()
        return True

    def _remove(self, user_id: str, product_id: str) -> bool:
        try:
            self.repo.delete_line(user_id, product_id)
        except RemoteError as e:
            logger.error(f"Failed to remove {product_id} for user {user_id}: {e}")
            self.notifier.error("Error", "Failed to remove item from cart.")
            return False

        logger.info(f"Product {product_id} removed from cart of user {user_id}")
        self.notifier.success("Removed from cart", "Item has been removed from your cart.")
        self.reload()
        return True

    def _refresh(self, user_id: str) -> bool:
        """Re-read the remote cart into the projection; False if the read failed."""
        try:
            lines = self.repo.fetch_lines(user_id)
        except RemoteError as e:
            logger.error(f"Error refreshing cart of user {user_id}: {e}")
            return False

        if self.session.user_id == user_id:
            self._lines = tuple(lines)
        return True

    @contextmanager
    def _inflight(self, user_id: str, product_id: str, failure: str):
        key = cart_line_key(user_id, product_id)
        token = uuid4().hex

        try:
            acquired = self.lock_service.acquire_with_wait(key, token, self.lock_ttl, self.lock_wait)
        except RedisError as e:
            logger.error(f"Lock backend unavailable for {key}: {e}")
            self.notifier.error("Error", failure)
            acquired = None

        if acquired is False:
            self.notifier.error("Cart busy", "Another update of this item is still in progress. Please try again.")

        try:
            yield acquired
        finally:
            if acquired:
                try:
                    self.lock_service.release(key, token)
                except RedisError as e:
                    #ttl frees it anyway
                    logger.warning(f"Failed to release lock {key}: {e}")

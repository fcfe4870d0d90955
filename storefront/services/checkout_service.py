# storefront/services/checkout_service.py
from uuid import uuid4

from redis.exceptions import RedisError

from storefront.domain import pricing
from storefront.domain.errors import AuthenticationRequired, EmptyCartError, RemoteError
from storefront.domain.schemas import CheckoutSummaryOut, OrderLineIn, ShippingAddress
from storefront.repos.order_repo import OrderRepo
from storefront.services.cart_service import CartStateManager
from storefront.services.lock_service import LockService, checkout_key
from storefront.services.notification_service import NotificationService, Notifier
from storefront.services.session_provider import SessionProvider
from storefront.utils.settings import INFLIGHT_LOCK_TTL_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CheckoutService:
    """
    Turns the cart projection into one order plus its order lines.
    Kept apart from the cart, it only reads the cart and asks it to clear.
    """

    def __init__(
        self,
        repo: OrderRepo,
        cart: CartStateManager,
        session: SessionProvider,
        notifier: Notifier,
        lock_service: LockService,
        notification_service: NotificationService | None = None,
    ):
        self.repo = repo
        self.cart = cart
        self.session = session
        self.notifier = notifier
        self.lock_service = lock_service
        self.notification_service = notification_service or NotificationService()

    def _require_user(self) -> str:
        user_id = self.session.user_id
        if not user_id:
            raise AuthenticationRequired("Sign in to check out")
        return user_id

    def summary(self) -> CheckoutSummaryOut:
        self._require_user()
        lines = self.cart.lines
        if not lines:
            raise EmptyCartError("Cart is empty")

        subtotal = pricing.subtotal(lines)
        shipping = pricing.shipping_for(subtotal)
        return CheckoutSummaryOut(
            items=list(lines),
            subtotal=subtotal,
            shipping=shipping,
            total=pricing.order_total(subtotal),
            free_shipping=shipping == 0,
        )

    def place_order(self, address: ShippingAddress) -> str | None:
        """
        Use case: place order.

        1. signed in, cart not empty (empty -> EmptyCartError, nothing written)
        2. total = subtotal + shipping
        3. insert the order, status pending
        4. one order line per cart line at the cart snapshot price
        5. batch insert the lines; on failure the order is deleted again
        6. clear the cart

        Returns the order id, or None after a failure toast.
        """
        user_id = self._require_user()

        if self.cart.is_empty():
            raise EmptyCartError("Cart is empty")

        key = checkout_key(user_id)
        token = uuid4().hex
        try:
            acquired = self.lock_service.acquire(key, token, INFLIGHT_LOCK_TTL_SECONDS)
        except RedisError as e:
            logger.error(f"Lock backend unavailable for {key}: {e}")
            self.notifier.error("Error", "Failed to place order. Please try again.")
            return None

        #double submit: the first request owns the checkout
        if not acquired:
            self.notifier.error("Checkout in progress", "Your order is already being placed.")
            return None

        try:
            return self._place_order(user_id, address)
        finally:
            try:
                self.lock_service.release(key, token)
            except RedisError as e:
                logger.warning(f"Failed to release lock {key}: {e}")

    def _place_order(self, user_id: str, address: ShippingAddress) -> str | None:
        #snapshot once, prices below are the ones the user saw
        lines = self.cart.lines
        if not lines:
            raise EmptyCartError("Cart is empty")

        subtotal = pricing.subtotal(lines)
        total = pricing.order_total(subtotal)

        try:
            order = self.repo.create_order(user_id, total, address)
        except RemoteError as e:
            logger.error(f"Error placing order for user {user_id}: {e}")
            self.notifier.error("Error", "Failed to place order. Please try again.")
            return None

        logger.info(f"Order {order.id} created for user {user_id}, total {total}")

        order_lines = [
            OrderLineIn(
                order_id=order.id,
                product_id=line.product_id,
                quantity=line.quantity,
                price=line.price,
            )
            for line in lines
        ]

        try:
            self.repo.insert_lines(order_lines)
        except RemoteError as e:
            logger.error(f"Error writing lines of order {order.id}: {e}")
            self._discard_orphan(order.id, user_id)
            self.notifier.error("Error", "Failed to place order. Please try again.")
            return None

        #the order is complete here, a failed clear only leaves its own toast
        self.cart.clear_cart()

        self.notifier.success(
            "Order placed successfully!",
            f"Your order #{order.id[:8]} has been placed.",
        )

        try:
            self.notification_service.send_order_notification(user_id, order.id)
        except Exception as e:
            logger.warning(f"Failed to queue notification for order {order.id}: {e}")

        return order.id

    def _discard_orphan(self, order_id: str, user_id: str) -> None:
        try:
            self.repo.delete_order(order_id, user_id)
            logger.info(f"Orphan order {order_id} deleted")
            return
        except RemoteError as e:
            logger.error(f"Failed to delete orphan order {order_id}, scheduling purge: {e}")

        try:
            self.notification_service.schedule_orphan_purge(order_id)
        except Exception as e:
            #periodic sweep still picks it up
            logger.warning(f"Failed to schedule purge of order {order_id}: {e}")

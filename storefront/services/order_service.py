# storefront/services/order_service.py
from storefront.domain import pricing
from storefront.domain.errors import AuthenticationRequired, RemoteError
from storefront.domain.schemas import Order, OrderDetailOut, OrderStatus, StatusStep
from storefront.repos.order_repo import OrderRepo
from storefront.services.notification_service import Notifier
from storefront.services.session_provider import SessionProvider
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

PROGRESS = [
    OrderStatus.PENDING,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
]


def status_progress(status: OrderStatus) -> list[StatusStep]:
    """Fulfilment steps reached so far; a cancelled order reached none."""
    reached = PROGRESS.index(status) if status in PROGRESS else -1
    return [StatusStep(status=step, reached=i <= reached) for i, step in enumerate(PROGRESS)]


class OrderService:
    """Order history and order detail (queries only)."""

    def __init__(self, repo: OrderRepo, session: SessionProvider, notifier: Notifier):
        self.repo = repo
        self.session = session
        self.notifier = notifier

    def _require_user(self) -> str:
        user_id = self.session.user_id
        if not user_id:
            raise AuthenticationRequired("Sign in to see your orders")
        return user_id

    def list_orders(self) -> list[Order] | None:
        """Newest first; None after a failure toast."""
        user_id = self._require_user()
        try:
            return self.repo.list_orders(user_id)
        except RemoteError as e:
            logger.error(f"Error fetching orders of user {user_id}: {e}")
            self.notifier.error("Error", "Failed to load orders.")
            return None

    def get_order(self, order_id: str) -> OrderDetailOut | None:
        user_id = self._require_user()

        try:
            order = self.repo.get_order(order_id, user_id)
        except RemoteError as e:
            logger.error(f"Error fetching order {order_id}: {e}")
            return None

        if order is None:
            return None

        try:
            items = self.repo.get_order_lines(order_id)
        except RemoteError as e:
            logger.error(f"Error fetching items of order {order_id}: {e}")
            items = []

        #total was fixed at checkout, shipping is whatever it adds on top of the lines
        subtotal = pricing.subtotal(items)
        shipping = pricing.money(order.total_amount - subtotal) if items else pricing.money(0)

        return OrderDetailOut(
            order=order,
            items=items,
            subtotal=subtotal,
            shipping=shipping,
            progress=status_progress(order.status),
        )

# storefront/services/notification_service.py
import threading

from storefront.celery_worker import celery_app
from storefront.domain.schemas import Notification
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class Notifier:
    """
    Toast queue of one storefront session.
    Toasts are transient: drain() hands them out once.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._pending: list[Notification] = []

    def push(self, title: str, description: str = "", variant: str = "default") -> Notification:
        note = Notification(title=title, description=description, variant=variant)
        with self._lock:
            self._pending.append(note)
        return note

    def success(self, title: str, description: str = "") -> Notification:
        return self.push(title, description)

    def error(self, title: str, description: str = "") -> Notification:
        return self.push(title, description, variant="destructive")

    def peek(self) -> list[Notification]:
        with self._lock:
            return list(self._pending)

    def drain(self) -> list[Notification]:
        with self._lock:
            pending, self._pending = self._pending, []
        return pending


class NotificationService:
    """
    Background notifications about orders.
    Uses Celery so checkout never waits on them.
    """

    @staticmethod
    def send_order_notification(user_id: str, order_id: str):
        send_order_notification_task.delay(user_id, order_id)

    @staticmethod
    def schedule_orphan_purge(order_id: str):
        from storefront.tasks.orders import purge_orphan_order_task

        purge_orphan_order_task.delay(order_id)


@celery_app.task(name="storefront.services.notification_service.send_order_notification_task")
def send_order_notification_task(user_id: str, order_id: str):
    """Only logs; an email/push gateway would plug in here."""
    logger.info(f"[NOTIFICATION] User {user_id}: order {order_id} has been placed")

    return {"user_id": user_id, "order_id": order_id, "status": "sent"}

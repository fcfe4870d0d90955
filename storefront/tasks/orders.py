# storefront/tasks/orders.py
from datetime import datetime, timezone, timedelta

from storefront.celery_worker import celery_app
from storefront.domain.errors import RemoteError
from storefront.remote.client import RemoteClient
from storefront.repos.order_repo import OrderRepo
from storefront.utils.settings import REMOTE_SERVICE_KEY, ORPHAN_ORDER_GRACE_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def service_order_repo() -> OrderRepo:
    #service key: these jobs act outside any user's session
    return OrderRepo(RemoteClient(api_key=REMOTE_SERVICE_KEY))


@celery_app.task(
    bind=True,
    name="storefront.tasks.orders.purge_orphan_order_task",
    max_retries=5,
    default_retry_delay=30,
)
def purge_orphan_order_task(self, order_id: str):
    repo = service_order_repo()

    try:
        if repo.count_lines(order_id):
            logger.info(f"Order {order_id} has lines, not an orphan, keeping it")
            return {"order_id": order_id, "purged": False}

        repo.delete_order(order_id)
    except RemoteError as e:
        logger.warning(f"Purge of orphan order {order_id} failed: {e}")
        raise self.retry(exc=e)

    logger.info(f"Orphan order {order_id} purged")
    return {"order_id": order_id, "purged": True}


@celery_app.task(name="storefront.tasks.orders.sweep_orphan_orders_task")
def sweep_orphan_orders_task():
    logger.info("Orphan order sweep started")
    repo = service_order_repo()

    cutoff = datetime.now(timezone.utc) - timedelta(seconds=ORPHAN_ORDER_GRACE_SECONDS)
    orphan_ids = repo.find_orphaned(cutoff)

    logger.info(f"Found {len(orphan_ids)} orphan orders")

    purged = []
    for order_id in orphan_ids:
        try:
            repo.delete_order(order_id)
            purged.append(order_id)
        except RemoteError as e:
            logger.warning(f"Failed to purge orphan order {order_id}: {e}")

    return purged

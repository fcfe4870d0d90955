# storefront/celery_worker.py
from celery import Celery

from storefront.utils.settings import (
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    ORPHAN_SWEEP_INTERVAL_SECONDS,
)

celery_app = Celery(
    "storefront",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

#tasks live in these modules, import them so the worker registers them
celery_app.conf.imports = (
    "storefront.tasks.orders",
    "storefront.services.notification_service",
)

celery_app.conf.beat_schedule = {
    "sweep-orphan-orders": {
        "task": "storefront.tasks.orders.sweep_orphan_orders_task",
        "schedule": ORPHAN_SWEEP_INTERVAL_SECONDS,
    },
}

celery_app.conf.timezone = "UTC"

# storefront/utils/settings.py
import os
from decimal import Decimal
from dotenv import load_dotenv

load_dotenv()

#hosted backend (rest + auth)
REMOTE_URL = os.getenv("REMOTE_URL", "http://localhost:54321")
REMOTE_ANON_KEY = os.getenv("REMOTE_ANON_KEY", "")
REMOTE_SERVICE_KEY = os.getenv("REMOTE_SERVICE_KEY", "")
REMOTE_TIMEOUT_SECONDS = float(os.getenv("REMOTE_TIMEOUT_SECONDS", 10))
REMOTE_READ_ATTEMPTS = int(os.getenv("REMOTE_READ_ATTEMPTS", 1))

REDIS_URL = os.getenv("REDIS_URL", "redis://redis:6379/0")
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://redis:6379/1")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "redis://redis:6379/2")

INFLIGHT_LOCK_TTL_SECONDS = int(os.getenv("INFLIGHT_LOCK_TTL_SECONDS", 30))
INFLIGHT_WAIT_SECONDS = float(os.getenv("INFLIGHT_WAIT_SECONDS", 5))
INFLIGHT_POLL_SECONDS = float(os.getenv("INFLIGHT_POLL_SECONDS", 0.05))

FREE_SHIPPING_THRESHOLD = Decimal(os.getenv("FREE_SHIPPING_THRESHOLD", "50.00"))
SHIPPING_SURCHARGE = Decimal(os.getenv("SHIPPING_SURCHARGE", "9.99"))

ORPHAN_ORDER_GRACE_SECONDS = int(os.getenv("ORPHAN_ORDER_GRACE_SECONDS", 15*60))
ORPHAN_SWEEP_INTERVAL_SECONDS = float(os.getenv("ORPHAN_SWEEP_INTERVAL_SECONDS", 5*60))

SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "storefront_session")
#in-memory storefront sessions, dropped when idle or over the cap (oldest first)
SESSION_IDLE_SECONDS = float(os.getenv("SESSION_IDLE_SECONDS", 2*60*60))
SESSION_MAX_COUNT = int(os.getenv("SESSION_MAX_COUNT", 10000))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

import redis
from tenacity import Retrying, stop_after_delay, wait_fixed, retry_if_result

from storefront.utils.retry import redis_retry
from storefront.utils.settings import REDIS_URL, INFLIGHT_POLL_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

#compare and delete in one step, only the holder's token releases the key
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


def cart_line_key(user_id: str, product_id: str) -> str:
    return f"cart:{user_id}:product:{product_id}:inflight"


def checkout_key(user_id: str) -> str:
    return f"checkout:{user_id}:inflight"


class LockService:
    """
    In-flight guards for cart and checkout mutations.
    -acquire: SET key token NX EX ttl
    -release: lua compare-and-delete
    -acquire_with_wait: polls acquire until the wait runs out
    """

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @redis_retry()
    def acquire(self, key: str, token: str, ttl: int) -> bool:
        logger.debug(f"Acquire lock {key} token {token}")
        #expires on its own if the holder dies mid-request
        return bool(self.redis.set(name=key, value=token, nx=True, ex=ttl))

    @redis_retry()
    def release(self, key: str, token: str) -> bool:
        logger.debug(f"Release lock {key} token {token}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)

    def acquire_with_wait(self, key: str, token: str, ttl: int, wait: float) -> bool:
        retrying = Retrying(
            stop=stop_after_delay(wait),
            wait=wait_fixed(INFLIGHT_POLL_SECONDS),
            retry=retry_if_result(lambda acquired: not acquired),
            retry_error_callback=lambda state: False,
        )
        return retrying(self.acquire, key, token, ttl)



import redis
from storefront.utils.retry import redis_retry
from storefront.utils.settings import REDIS_URL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

#LUA porownaj i usun, atomicity
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""

#redis wykonuje lua atomowo, nikt nie wcisnie sie miedzy GET a DEL


class LockService:
    """
    -blokada wysylki do przewoznika per numer zamowienia
    -checkout, endpoint admina i zewnetrzny job retry nie wysla tej samej paczki dwa razy naraz
    -atomowosc przy pomocy lua
    """

    def __init__(self, url: str | None = None):
        self.redis = redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def _key(order_number: str) -> str:
        return f"order:{order_number}:carrier-lock"

    @redis_retry()
    def acquire_submission_lock(self, order_number: str, owner: str, ttl: int) -> bool:
        key = self._key(order_number)
        logger.info(f"Acquire lock {key} for {owner}")
        #SET order:COD-000001:carrier-lock "<owner>" NX EX 60
        return bool(self.redis.set(name=key, value=owner, nx=True, ex=ttl))

    @redis_retry()
    def release_submission_lock(self, order_number: str, owner: str) -> bool:
        key = self._key(order_number)
        logger.info(f"Release lock {key} for {owner}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, owner)
        return bool(res)

# erp_pos/services/lock_service.py
import uuid

import redis
from redis.exceptions import RedisError

from erp_pos.utils.retry import redis_retry
from erp_pos.utils.settings import REDIS_URL
from erp_pos.utils.logging import get_logger

logger = get_logger(__name__)

#compare-and-delete as one Lua script: nothing can run between GET and DEL,
#so a lock that expired and was taken by someone else is never released by us
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


class LockService:
    """
    Checkout guard shared by all workers:
    - one in-flight checkout per POS session (SET NX EX)
    - release only by the holder token (Lua)
    - TTL bounds a crashed worker's lock
    """

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def _key(session_id: str) -> str:
        return f"checkout:{session_id}:lock"

    @redis_retry()
    def acquire_checkout_lock(self, session_id: str, ttl: float) -> str | None:
        """Returns the holder token, or None when another submit holds the lock."""
        key = self._key(session_id)
        token = uuid.uuid4().hex
        logger.info(f"Acquire lock {key}")
        #SET checkout:<sid>:lock <token> NX PX <ttl ms>
        acquired = self.redis.set(
            name=key,
            value=token,
            nx=True,
            px=max(1, int(ttl * 1000)),
        )
        return token if acquired else None

    @redis_retry()
    def release_checkout_lock(self, session_id: str, token: str) -> bool:
        key = self._key(session_id)
        logger.info(f"Release lock {key}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)

    def safe_release(self, session_id: str, token: str | None) -> None:
        if token is None:
            return
        try:
            self.release_checkout_lock(session_id, token)
        except RedisError as e:
            #the TTL frees it anyway
            logger.warning(f"Failed to release checkout lock for session {session_id}: {e}")

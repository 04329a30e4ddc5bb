# erp_pos/utils/retry.py
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type
from sqlalchemy.exc import OperationalError
import requests
import redis

ATTEMPTS = 3


def _retry_on(errors, base: float, cap: float):
    return retry(
        reraise=True,
        stop=stop_after_attempt(ATTEMPTS),
        wait=wait_exponential(multiplier=base, min=base, max=cap),
        retry=retry_if_exception_type(errors),
    )


def http_retry():
    return _retry_on(requests.RequestException, base=0.3, cap=3)


def redis_retry():
    return _retry_on(redis.RedisError, base=0.2, cap=2)


#transient DB errors only (connection drop, lock timeout); constraint errors fail fast
def db_retry():
    return _retry_on(OperationalError, base=0.1, cap=1)

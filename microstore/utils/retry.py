# microstore/utils/retry.py
import logging

import redis
import requests
from tenacity import before_sleep_log, retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from microstore.utils.logging import get_logger
from microstore.utils.settings import HTTP_RETRY_ATTEMPTS, REDIS_RETRY_ATTEMPTS

logger = get_logger(__name__)


def http_retry():
    #wywolania innych uslug (ServiceClient)
    return retry(
        reraise=True,
        stop=stop_after_attempt(HTTP_RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception_type(requests.RequestException),
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )


def redis_retry():
    #locki koszyka (LockService)
    return retry(
        reraise=True,
        stop=stop_after_attempt(REDIS_RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(redis.RedisError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )

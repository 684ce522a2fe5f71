"""
Retry policy shared by the HTTP backend adapters.

Only failures that may clear up on their own are retried: server errors,
dropped connections and timeouts.  A 4xx response (bad key, malformed
request) fails on the first attempt.
"""

import requests
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

REQUEST_TIMEOUT = 300


def is_transient(exc: BaseException) -> bool:
    if isinstance(exc, requests.HTTPError):
        return exc.response is not None and exc.response.status_code >= 500
    return isinstance(exc, (requests.ConnectionError, requests.Timeout))


transient_retry = retry(
    retry=retry_if_exception(is_transient),
    wait=wait_exponential(multiplier=1),
    stop=stop_after_attempt(3),
    reraise=True,
)

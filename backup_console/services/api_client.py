"""HTTP client base with error mapping and retries for REST backends."""

import logging
import time
from functools import wraps
import requests
from requests.exceptions import Timeout, ConnectionError

log = logging.getLogger("api_client")

class APIError(Exception):
    """Base exception for API errors.

    ``error_type`` carries the backend's machine readable error name when
    the response body has one, e.g. ``row_not_found``.
    """
    def __init__(self, message, status_code=None, response=None, error_type=None):
        self.message = message
        self.status_code = status_code
        self.response = response
        self.error_type = error_type
        super().__init__(self.message)

class UnauthorizedError(APIError):
    pass

class NotFoundError(APIError):
    pass

class ConflictError(APIError):
    """Row or resource id already taken."""
    pass

class RateLimitError(APIError):
    """Rate limit exceeded; ``retry_after`` is the server's hint in seconds."""
    def __init__(self, message, retry_after=None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after

class ServerError(APIError):
    pass

class ConnectionFailedError(APIError):
    """Network failure or timeout talking to the API."""
    pass

RETRYABLE_ERRORS = (ConnectionFailedError, RateLimitError, ServerError)

STATUS_ERRORS = {
    401: UnauthorizedError,
    403: UnauthorizedError,
    404: NotFoundError,
    409: ConflictError,
}

def _retry_after(response):
    value = response.headers.get('Retry-After') if response is not None else None
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None

def error_for_response(response, endpoint):
    """Build the APIError subclass matching an error response."""
    status = response.status_code
    try:
        body = response.json() or {}
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    error_type = body.get('type')
    detail = body.get('message') or response.reason or 'no details'
    message = f"{status} on {endpoint}: {detail}"

    if status == 429:
        return RateLimitError(message, retry_after=_retry_after(response), status_code=status,
                              response=response, error_type=error_type)
    if status >= 500:
        return ServerError(message, status_code=status, response=response, error_type=error_type)
    error_class = STATUS_ERRORS.get(status, APIError)
    return error_class(message, status_code=status, response=response, error_type=error_type)

def retry(max_tries=3, delay=1, backoff=2, exceptions=RETRYABLE_ERRORS):
    """Retry decorator with exponential backoff.

    A rate limit response that names a Retry-After delay is waited out
    instead of the backoff delay.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            mtries, mdelay = max_tries, delay
            last_exception = None

            while mtries > 0:
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    last_exception = e
                    mtries -= 1
                    if mtries == 0:
                        break
                    wait = getattr(e, 'retry_after', None) or mdelay
                    log.warning(f"{func.__name__}: {str(e)}, retrying in {wait} seconds ({mtries} left)")
                    time.sleep(wait)
                    mdelay *= backoff

            raise last_exception
        return wrapper
    return decorator

class APIClient:
    """JSON-over-HTTP client sharing one session and default headers."""

    def __init__(self, base_url, timeout=10, headers=None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()
        if headers:
            self.session.headers.update(headers)

    @retry()
    def request(self, method, endpoint, headers=None, params=None, data=None, json=None):
        """Send a request and return the decoded JSON body, or None when empty.

        Raises:
            APIError: A subclass matching the failure; connection problems,
                429 and 5xx responses are retried first
        """
        url = f"{self.base_url}{endpoint}"

        try:
            response = self.session.request(
                method=method,
                url=url,
                headers=headers,
                params=params,
                data=data,
                json=json,
                timeout=self.timeout
            )
        except (ConnectionError, Timeout) as e:
            raise ConnectionFailedError(f"Connection error on {method} {endpoint}: {e}")

        if response.status_code >= 400:
            raise error_for_response(response, endpoint)

        return response.json() if response.content else None

"""
Shared HTTP helpers for the third-party APIs (X, YouTube, Firecrawl,
Perplexity, Replicate, RSS hosts)
"""
from typing import Any, Dict, Optional

import httpx
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from config.settings import settings
from utils.errors import UpstreamServiceError
from utils.logger import get_logger

logger = get_logger(__name__)


def _is_transient(exc: BaseException) -> bool:
    """Network failures, 429s and 5xx responses are worth another try"""
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return False


@retry(
    retry=retry_if_exception(_is_transient),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)
def _send(method: str, url: str, **kwargs) -> httpx.Response:
    timeout = kwargs.pop("timeout", None) or settings.HTTP_TIMEOUT
    with httpx.Client(timeout=timeout, follow_redirects=True) as client:
        resp = client.request(method, url, **kwargs)
        resp.raise_for_status()
        return resp


def request(method: str, url: str, service: str = "upstream",
            headers: Optional[Dict[str, str]] = None,
            params: Optional[Dict[str, Any]] = None,
            json: Optional[Any] = None,
            timeout: Optional[float] = None) -> httpx.Response:
    """
    Send a request, retrying transient failures.

    Raises:
        UpstreamServiceError: with the upstream status/body in ``details``
    """
    try:
        return _send(method, url, headers=headers, params=params, json=json, timeout=timeout)
    except httpx.HTTPStatusError as e:
        body = e.response.text[:500]
        logger.error(f"{service} API error {e.response.status_code} for {url}: {body}")
        raise UpstreamServiceError(
            f"{service} request failed with status {e.response.status_code}",
            details=body,
        ) from e
    except httpx.HTTPError as e:
        logger.error(f"{service} request to {url} failed: {e}")
        raise UpstreamServiceError(f"{service} request failed", details=str(e)) from e


def request_json(method: str, url: str, service: str = "upstream", **kwargs) -> Any:
    """Same as request() but decodes the JSON body"""
    resp = request(method, url, service=service, **kwargs)
    try:
        return resp.json()
    except ValueError as e:
        raise UpstreamServiceError(f"{service} returned invalid JSON", details=resp.text[:500]) from e

"""Shared HTTP helpers used by the registry fetchers.

Encapsulates common request/timeout error handling so fetchers avoid
duplicating try/except blocks. Failures are reported as a status code of 0
plus a reason string; nothing here raises or exits.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional, Tuple

import requests

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 16384


def _read_body(response: requests.Response, deadline: float, timeout: float) -> str:
    """Read a streamed body, abandoning it once the monotonic ``deadline`` passes.

    The requests timeout bounds each connect and read wait separately, so a
    server trickling bytes is only cut off here.
    """
    chunks = []
    for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
        if time.monotonic() > deadline:
            raise requests.Timeout(f"body not received within {timeout} seconds")
        chunks.append(chunk)
    return b"".join(chunks).decode(response.encoding or "utf-8", errors="replace")


def robust_get(
    url: str,
    *,
    context: str,
    headers: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
    retries: Optional[int] = None,
    **kwargs: Any
) -> Tuple[int, Dict[str, str], str]:
    """Perform a GET request with timeout and bounded retries, with DEBUG traces.

    Args:
        url: Target URL.
        context: Human-readable source tag for logs (e.g., "registry").
        headers: Optional request headers.
        timeout: Seconds before the attempt is abandoned; covers the whole
            transfer, not only each socket wait.
        retries: Total attempts; defaults to Constants.HTTP_RETRY_MAX.
        **kwargs: Passed through to requests.get.

    Returns:
        Tuple of (status_code, headers_dict, body_text). Transport failures
        yield status 0 and the failure reason as the body.
    """
    effective_timeout = timeout if timeout is not None else Constants.REQUEST_TIMEOUT
    attempts = max(1, retries if retries is not None else Constants.HTTP_RETRY_MAX)
    request_headers = {"User-Agent": Constants.USER_AGENT}
    if headers:
        request_headers.update(headers)
    safe_target = safe_url(url)
    last_exception = None

    for attempt in range(attempts):
        with Timer() as t:
            try:
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP request",
                        extra=extra_context(
                            event="http_request",
                            component="http_client",
                            action="GET",
                            target=safe_target,
                            context=context,
                            attempt=attempt + 1
                        )
                    )
                deadline = time.monotonic() + effective_timeout
                response = requests.get(
                    url,
                    timeout=effective_timeout,
                    headers=request_headers,
                    stream=True,
                    **kwargs
                )
                try:
                    body = _read_body(response, deadline, effective_timeout)
                finally:
                    response.close()
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP response",
                        extra=extra_context(
                            event="http_response",
                            component="http_client",
                            action="GET",
                            outcome="success" if response.ok else "non_2xx",
                            status_code=response.status_code,
                            duration_ms=t.duration_ms(),
                            target=safe_target,
                            context=context
                        )
                    )
                return response.status_code, dict(response.headers), body
            except requests.Timeout:
                last_exception = f"timed out after {effective_timeout} seconds"
                logger.warning("%s request to %s timed out", context, safe_target)
            except requests.RequestException as exc:  # includes ConnectionError
                last_exception = f"connection error: {exc}"
                logger.warning("%s connection error for %s: %s", context, safe_target, exc)

    return 0, {}, f"Request failed after {attempts} attempt(s): {last_exception}"

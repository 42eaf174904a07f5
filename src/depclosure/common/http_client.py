"""Shared HTTP helpers used by repository sources.

Encapsulates request/timeout error handling so sources never raise for
expected network outcomes. Retries live one layer up, in the resolver,
where they can observe cancellation.
"""
from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

import requests

from ..constants import Constants
from .logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)

# Status used in place of an HTTP status when no response was received.
NETWORK_ERROR = 0


def is_transient_status(status_code: int) -> bool:
    """True for outcomes worth retrying: no response, throttling or server errors."""
    return status_code == NETWORK_ERROR or status_code == 429 or status_code >= 500


def fetch(
    url: str,
    *,
    timeout: float = Constants.REQUEST_TIMEOUT,
    user_agent: str = Constants.USER_AGENT,
    headers: Optional[Dict[str, str]] = None,
) -> Tuple[int, Dict[str, str], bytes]:
    """Perform a single GET and return (status_code, headers, body).

    On timeout or connection failure the status is ``NETWORK_ERROR`` and the
    body holds the error description.
    """
    safe_target = safe_url(url)
    request_headers = {"User-Agent": user_agent}
    if headers:
        request_headers.update(headers)
    with Timer() as t:
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP request",
                extra=extra_context(
                    event="http_request",
                    component="http_client",
                    action="GET",
                    target=safe_target,
                )
            )
        try:
            response = requests.get(url, timeout=timeout, headers=request_headers)
        except requests.Timeout:
            logger.debug(
                "HTTP timeout",
                extra=extra_context(
                    event="http_exception",
                    component="http_client",
                    action="GET",
                    outcome="timeout",
                    target=safe_target,
                )
            )
            return NETWORK_ERROR, {}, f"timed out after {timeout} seconds".encode()
        except requests.RequestException as exc:  # includes ConnectionError
            logger.debug(
                "HTTP request exception",
                extra=extra_context(
                    event="http_exception",
                    component="http_client",
                    action="GET",
                    outcome="request_exception",
                    target=safe_target,
                )
            )
            return NETWORK_ERROR, {}, f"connection error: {exc}".encode()

    if is_debug_enabled(logger):
        logger.debug(
            "HTTP response",
            extra=extra_context(
                event="http_response",
                component="http_client",
                action="GET",
                status_code=response.status_code,
                duration_ms=t.duration_ms(),
                target=safe_target,
            )
        )
    return response.status_code, dict(response.headers), response.content

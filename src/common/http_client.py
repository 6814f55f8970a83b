"""Shared HTTP helpers used by the registry client and the artifact fetcher.

Encapsulates common request/timeout error handling so modules avoid
duplicating try/except blocks.
"""
from __future__ import annotations

import json
import logging
import sys
import time
from typing import Any, Dict, Optional, Tuple

import requests

from constants import Constants, ExitCodes
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)


def safe_get(url: str, *, context: str, fatal: bool = True, **kwargs: Any) -> requests.Response:
    """Perform a single GET request with consistent error handling and DEBUG traces.

    Args:
        url: Target URL.
        context: Human-readable source tag for logs (e.g., "nuget").
        fatal: Exit the process on transport failure; otherwise re-raise.
        **kwargs: Passed through to requests.get.

    Returns:
        requests.Response: The HTTP response object.
    """
    safe_target = safe_url(url)
    with Timer() as t:
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP request",
                extra=extra_context(
                    event="http_request",
                    component="http_client",
                    action="GET",
                    target=safe_target,
                    context=context
                )
            )
        try:
            res = requests.get(url, timeout=Constants.REQUEST_TIMEOUT, **kwargs)
            if is_debug_enabled(logger):
                logger.debug(
                    "HTTP response ok",
                    extra=extra_context(
                        event="http_response",
                        component="http_client",
                        action="GET",
                        outcome="success",
                        status_code=res.status_code,
                        duration_ms=t.duration_ms(),
                        target=safe_target,
                        context=context
                    )
                )
            return res
        except requests.Timeout:
            logger.error(
                "%s request timed out after %s seconds",
                context,
                Constants.REQUEST_TIMEOUT,
            )
            if not fatal:
                raise
            sys.exit(ExitCodes.CONNECTION_ERROR.value)
        except requests.RequestException as exc:  # includes ConnectionError
            logger.error("%s connection error: %s", context, exc)
            if not fatal:
                raise
            sys.exit(ExitCodes.CONNECTION_ERROR.value)


def robust_get(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any
) -> Tuple[int, Dict[str, str], str]:
    """Perform GET request with timeout and retries with DEBUG traces.

    Server errors (5xx) and transport failures are retried with exponential
    backoff. After the last attempt a status of 0 is returned together with
    a description of the failure in place of the body.
    """
    safe_target = safe_url(url)
    last_exception = None

    for attempt in range(Constants.HTTP_RETRY_MAX):
        if attempt:
            time.sleep(Constants.HTTP_RETRY_BASE_DELAY_SEC * (2 ** (attempt - 1)))
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
                            attempt=attempt + 1
                        )
                    )

                response = requests.get(
                    url,
                    timeout=Constants.REQUEST_TIMEOUT,
                    headers=headers,
                    **kwargs
                )

                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP response",
                        extra=extra_context(
                            event="http_response",
                            component="http_client",
                            action="GET",
                            outcome="success" if response.status_code < 500 else "server_error",
                            status_code=response.status_code,
                            duration_ms=t.duration_ms(),
                            target=safe_target
                        )
                    )
                if response.status_code >= 500:
                    last_exception = f"HTTP {response.status_code}"
                    continue
                return response.status_code, dict(response.headers), response.text

            except requests.Timeout:
                last_exception = "timeout"
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP timeout",
                        extra=extra_context(
                            event="http_exception",
                            component="http_client",
                            action="GET",
                            outcome="timeout",
                            attempt=attempt + 1,
                            target=safe_target
                        )
                    )
                continue
            except requests.RequestException as exc:
                last_exception = str(exc)
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP request exception",
                        extra=extra_context(
                            event="http_exception",
                            component="http_client",
                            action="GET",
                            outcome="request_exception",
                            attempt=attempt + 1,
                            target=safe_target
                        )
                    )
                continue

    # All retries failed
    return 0, {}, f"Request failed after {Constants.HTTP_RETRY_MAX} attempts: {last_exception}"


def get_json(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any
) -> Tuple[int, Dict[str, str], Optional[Any]]:
    """Perform GET request and parse JSON response with DEBUG traces.

    Args:
        url: Target URL
        headers: Optional request headers
        **kwargs: Additional requests.get parameters

    Returns:
        Tuple of (status_code, headers_dict, parsed_json_or_none)
    """
    status_code, response_headers, text = robust_get(url, headers=headers, **kwargs)

    if status_code == 200 and text:
        try:
            return status_code, response_headers, json.loads(text)
        except json.JSONDecodeError:
            if is_debug_enabled(logger):
                logger.debug(
                    "JSON decode error",
                    extra=extra_context(
                        event="parse",
                        component="http_client",
                        action="get_json",
                        outcome="json_decode_error",
                        status_code=status_code,
                        target=safe_url(url)
                    )
                )
            return status_code, response_headers, None

    return status_code, response_headers, None

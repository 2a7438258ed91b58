"""Blocking HTTP helpers for the package index and other JSON lookups.

Requests go through ``requests`` with the configured timeout. Transport errors
and server errors are retried up to ``Constants.HTTP_RETRY_MAX`` times;
anything below 500 is cached in memory for ``Constants.HTTP_CACHE_TTL_SEC``.
A request that never succeeds reports status 0 instead of raising.
"""
from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, Optional, Tuple

import requests

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)

Reply = Tuple[int, Dict[str, str], str]

# (method, url, headers) -> (reply, fetched at)
_replies: Dict[str, Tuple[Reply, float]] = {}

_DEFAULT_HEADERS = {"User-Agent": "gitroll", "Accept": "application/json"}


def _cache_key(url: str, headers: Dict[str, str]) -> str:
    return f"GET {url} {sorted(headers.items())}"


def _cached(key: str) -> Optional[Reply]:
    entry = _replies.get(key)
    if entry is None:
        return None
    reply, fetched = entry
    if time.time() - fetched >= Constants.HTTP_CACHE_TTL_SEC:
        del _replies[key]
        return None
    return reply


def clear_cache() -> None:
    """Forget every cached reply."""
    _replies.clear()


def robust_get(url: str, *, headers: Optional[Dict[str, str]] = None, **kwargs: Any) -> Reply:
    """GET a URL with retries and caching; returns (status, headers, text)."""
    merged = dict(_DEFAULT_HEADERS)
    merged.update(headers or {})
    key = _cache_key(url, merged)
    target = safe_url(url)

    reply = _cached(key)
    if reply is not None:
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP cache hit",
                extra=extra_context(event="cache_hit", component="http_client", action="GET", target=target)
            )
        return reply

    problem = "no attempts made"
    for attempt in range(1, Constants.HTTP_RETRY_MAX + 1):
        with Timer() as t:
            try:
                response = requests.get(url, timeout=Constants.REQUEST_TIMEOUT, headers=merged, **kwargs)
            except requests.Timeout:
                response, problem = None, f"timed out after {Constants.REQUEST_TIMEOUT}s"
            except requests.RequestException as exc:
                response, problem = None, str(exc)
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP attempt",
                extra=extra_context(
                    event="http_response" if response is not None else "http_exception",
                    component="http_client",
                    action="GET",
                    target=target,
                    status_code=response.status_code if response is not None else None,
                    outcome="received" if response is not None else problem,
                    attempt=attempt,
                    duration_ms=t.duration_ms(),
                )
            )
        if response is None:
            continue
        reply = (response.status_code, dict(response.headers), response.text)
        if response.status_code >= 500:
            problem = f"server answered {response.status_code}"
            continue
        _replies[key] = (reply, time.time())
        return reply

    logger.warning("GET %s failed after %d attempt(s): %s", target, Constants.HTTP_RETRY_MAX, problem)
    return reply if reply is not None else (0, {}, "")


def get_json(url: str, *, headers: Optional[Dict[str, str]] = None,
             **kwargs: Any) -> Tuple[int, Dict[str, str], Optional[Any]]:
    """GET a URL and decode its body as JSON.

    Returns:
        (status, headers, payload); payload is None unless the status is 200
        and the body is valid JSON.
    """
    status, reply_headers, text = robust_get(url, headers=headers, **kwargs)
    if status != 200 or not text:
        return status, reply_headers, None
    try:
        return status, reply_headers, json.loads(text)
    except ValueError:
        logger.warning("response from %s is not JSON", safe_url(url))
        return status, reply_headers, None

"""
HTTP helpers.

This module centralizes the minimal HTTP client logic used by the Nominatim and
Overpass clients.

Design goals:
- Small surface area (GET JSON, POST form).
- Deterministic defaults (timeout + User-Agent).
- Raise on non-2xx so callers can decide how to fail (the reverse geocoder
  degrades to a fallback label, everything else surfaces as a failed search).
- One attempt per call: no retry, no backoff, no caching.
"""

from __future__ import annotations

from typing import Any

import httpx


DEFAULT_USER_AGENT = "woundwise/0.1.0 (+https://local)"


def _headers(headers: dict[str, str] | None) -> dict[str, str]:
    request_headers = {"User-Agent": DEFAULT_USER_AGENT}
    if headers:
        request_headers.update(headers)
    return request_headers


def get_json(
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 15,
) -> Any:
    """GET `url` and return the decoded JSON response.

    Raises:
        httpx.HTTPError: On transport errors or non-2xx status codes.
        ValueError: If the response body is not valid JSON.
    """
    with httpx.Client(timeout=timeout_seconds) as client:
        resp = client.get(url, params=params, headers=_headers(headers))
        resp.raise_for_status()
        return resp.json()


def post_form(
    url: str,
    *,
    data: dict[str, Any],
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 15,
) -> Any:
    """POST `data` as form-encoded body and return the decoded JSON response.

    Used by the Overpass client (`data=<query>`).

    Raises:
        httpx.HTTPError: On transport errors or non-2xx status codes.
        ValueError: If the response body is not valid JSON.
    """
    with httpx.Client(timeout=timeout_seconds) as client:
        resp = client.post(url, data=data, headers=_headers(headers))
        resp.raise_for_status()
        return resp.json()

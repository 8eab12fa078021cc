"""Outbound HTTP client shared by every endpoint attempt."""

from __future__ import annotations

import httpx

from antiproxy.core.config import Settings, settings


def build_http_client(config: Settings | None = None, **kwargs) -> httpx.AsyncClient:
    """Create the pooled AsyncClient used for upstream calls.

    The identifying client string goes out as the transport-level
    User-Agent header on every request. Extra kwargs (e.g. ``transport``)
    are passed through to ``httpx.AsyncClient``.
    """
    config = config or settings
    timeout = httpx.Timeout(config.request_timeout_seconds, connect=config.connect_timeout_seconds)
    limits = httpx.Limits(
        max_keepalive_connections=config.pool_max_idle_per_host,
        keepalive_expiry=config.pool_idle_timeout_seconds,
    )
    return httpx.AsyncClient(
        timeout=timeout,
        limits=limits,
        headers={"User-Agent": config.user_agent},
        **kwargs,
    )

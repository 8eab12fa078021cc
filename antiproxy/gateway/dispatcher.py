"""Dispatcher: serializing, failover-aware forwarder.

Main entry point for forwarding one inbound call upstream:
  1. Acquires the process-wide Concurrency Gate (FIFO, single slot)
  2. Waits on the Rate Limiter (one charge per inbound call)
  3. Tries each endpoint in order with the same request id
  4. Classifies every response; a terminal outcome is returned at once,
     5xx/transport failures move on to the next endpoint
  5. Returns EXHAUSTED when every endpoint failed transiently

Throttling (429) is never retried here. The caller owns recovery.

Usage:
    dispatcher = Dispatcher(endpoints, client, MinIntervalRateLimiter(0.5))
    outcome = await dispatcher.dispatch(OutboundRequest(model=..., ...))
"""

from __future__ import annotations

import asyncio
import logging
import time

import httpx

from antiproxy.core.config import Settings, settings
from antiproxy.core.metrics import (
    DISPATCH_DURATION,
    DISPATCH_OUTCOMES,
    ENDPOINT_ATTEMPTS,
    RATE_LIMIT_WAIT,
)
from antiproxy.gateway.classifier import classify_status, classify_transport_error
from antiproxy.gateway.concurrency import ConcurrencyGate
from antiproxy.gateway.rate_limiter import MinIntervalRateLimiter
from antiproxy.gateway.types import (
    Endpoint,
    EndpointSet,
    OutboundRequest,
    Outcome,
    OutcomeKind,
)

logger = logging.getLogger(__name__)

# Failures that leave no usable HTTP response and trigger failover.
# RequestError covers transport failures and bodies that fail to decode.
TRANSPORT_ERRORS: tuple[type[BaseException], ...] = (httpx.RequestError, asyncio.TimeoutError)


def _log_fields(request: OutboundRequest, endpoint: Endpoint | None = None) -> dict:
    fields = {"request_id": request.request_id}
    if endpoint is not None:
        fields["endpoint"] = endpoint.position
    return fields


class Dispatcher:
    """Runs one dispatch sequence at a time across an ordered endpoint set.

    Integrates:
      - ConcurrencyGate: one sequence process-wide, FIFO
      - MinIntervalRateLimiter: spacing between dispatch starts
      - Response classifier: terminal vs. next-endpoint decisions
    """

    def __init__(
        self,
        endpoints: EndpointSet,
        client: httpx.AsyncClient,
        rate_limiter: MinIntervalRateLimiter,
        gate: ConcurrencyGate | None = None,
        request_timeout: float | None = None,
    ):
        """
        Args:
            endpoints: Upstream endpoints in priority order
            client: Shared AsyncClient (timeouts, pool, User-Agent)
            rate_limiter: Owned rate-limit state
            gate: Concurrency gate; a fresh one is created if omitted
            request_timeout: Overall per-attempt deadline in seconds, covering
                connect, upload and the full body download
        """
        self.endpoints = endpoints
        self.client = client
        self.rate_limiter = rate_limiter
        self.gate = gate or ConcurrencyGate()
        self.request_timeout = request_timeout

    async def dispatch(self, request: OutboundRequest) -> Outcome:
        """Forward one inbound call and return its single terminal outcome."""
        async with self.gate:
            logger.info("Request %s acquired dispatch slot", request.request_id, extra=_log_fields(request))

            waited = await self.rate_limiter.wait_turn()
            RATE_LIMIT_WAIT.observe(waited)

            start = time.monotonic()
            try:
                outcome = await self._run_sequence(request)
            finally:
                DISPATCH_DURATION.observe(time.monotonic() - start)

        DISPATCH_OUTCOMES.labels(outcome=outcome.kind.value).inc()
        return outcome

    async def _run_sequence(self, request: OutboundRequest) -> Outcome:
        total = len(self.endpoints)

        for endpoint in self.endpoints:
            fields = _log_fields(request, endpoint)
            logger.info("[Endpoint %d/%d] Trying: %s", endpoint.position, total, endpoint.address, extra=fields)

            outcome = await self._attempt(endpoint, request)
            ENDPOINT_ATTEMPTS.labels(position=str(endpoint.position), result=outcome.kind.value).inc()

            if outcome.terminal:
                self._log_terminal(request, endpoint, outcome)
                return outcome

            if outcome.kind == OutcomeKind.SERVER_ERROR:
                logger.warning(
                    "Server error (%d) from endpoint %d/%d, trying next endpoint",
                    outcome.status_code,
                    endpoint.position,
                    total,
                    extra=fields,
                )
            else:
                logger.warning(
                    "Network error on endpoint %d/%d: %s",
                    endpoint.position,
                    total,
                    outcome.message,
                    extra=fields,
                )

        logger.error("All %d endpoints failed for request %s", total, request.request_id, extra=_log_fields(request))
        return Outcome.exhausted()

    async def _attempt(self, endpoint: Endpoint, request: OutboundRequest) -> Outcome:
        """Send the request to one endpoint and classify the result."""
        post = self.client.post(
            endpoint.address,
            json=request.wire_body(),
            headers=request.wire_headers(),
        )
        try:
            if self.request_timeout is not None:
                response = await asyncio.wait_for(post, timeout=self.request_timeout)
            else:
                response = await post
        except TRANSPORT_ERRORS as exc:
            return classify_transport_error(exc)

        return classify_status(response.status_code, response.text)

    @staticmethod
    def _log_terminal(request: OutboundRequest, endpoint: Endpoint, outcome: Outcome) -> None:
        fields = _log_fields(request, endpoint)
        if outcome.kind == OutcomeKind.SUCCESS:
            logger.info("Request %s successful via endpoint %d", request.request_id, endpoint.position, extra=fields)
        elif outcome.kind == OutcomeKind.RATE_LIMITED:
            logger.warning("429 Rate limited - returning to caller for account rotation", extra=fields)
        elif outcome.kind == OutcomeKind.BAD_REQUEST:
            logger.warning("Bad request (400) for request %s", request.request_id, extra=fields)
        elif outcome.kind == OutcomeKind.AUTH_ERROR:
            logger.warning("Auth error (%d) for request %s", outcome.status_code, request.request_id, extra=fields)
        else:
            logger.warning(
                "Upstream error (%d) from endpoint %d, not retrying",
                outcome.status_code,
                endpoint.position,
                extra=fields,
            )

    def get_status(self) -> dict:
        """Get dispatcher status."""
        return {
            "endpoints": self.endpoints.addresses,
            "gate": self.gate.get_stats(),
            "rate_limit": self.rate_limiter.get_stats(),
        }


def create_dispatcher(client: httpx.AsyncClient, config: Settings | None = None) -> Dispatcher:
    """Build a Dispatcher from settings around an existing client."""
    config = config or settings
    return Dispatcher(
        endpoints=EndpointSet(config.upstream_endpoints),
        client=client,
        rate_limiter=MinIntervalRateLimiter(config.min_request_interval),
        request_timeout=config.request_timeout_seconds,
    )

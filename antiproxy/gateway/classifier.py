"""Response Classifier: maps an upstream result to an Outcome.

Pure and stateless. 429/400/401/403 end the dispatch sequence at once;
5xx and transport failures move on to the next endpoint.

    2xx            -> SUCCESS          terminal
    429            -> RATE_LIMITED     terminal, caller rotates credentials
    400            -> BAD_REQUEST      terminal
    401, 403       -> AUTH_ERROR       terminal
    5xx            -> SERVER_ERROR     next endpoint
    transport fail -> TRANSPORT_ERROR  next endpoint
    anything else  -> OTHER_ERROR      terminal
"""

from __future__ import annotations

from antiproxy.gateway.types import Outcome


def classify_status(status_code: int, body: str) -> Outcome:
    """Classify an upstream HTTP response by status code."""
    if 200 <= status_code < 300:
        return Outcome.success(body, status_code=status_code)

    if status_code == 429:
        return Outcome.rate_limited(body)

    if status_code == 400:
        return Outcome.bad_request(body)

    if status_code in (401, 403):
        return Outcome.auth_error(status_code, body)

    if 500 <= status_code < 600:
        return Outcome.server_error(status_code)

    return Outcome.other_error(status_code, body)


def classify_transport_error(exc: BaseException) -> Outcome:
    """Classify a failure that produced no HTTP response (connect, DNS, timeout)."""
    detail = str(exc) or exc.__class__.__name__
    return Outcome.transport_error(f"{exc.__class__.__name__}: {detail}")

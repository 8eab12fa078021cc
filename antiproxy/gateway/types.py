"""Core types and DTOs for the dispatch gateway."""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Fixed protocol metadata embedded in every wire payload
CLIENT_USER_AGENT = "antigravity"
REQUEST_TYPE = "agent"

EXHAUSTED_MESSAGE = "All endpoints failed"


def new_request_id() -> str:
    return f"agent-{uuid.uuid4()}"


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Endpoint:
    """One upstream address and its 1-based position in the set."""

    address: str
    position: int


class EndpointSet:
    """Fixed, ordered list of upstream endpoints in priority order."""

    def __init__(self, addresses: Iterable[str]):
        self._endpoints: tuple[Endpoint, ...] = tuple(
            Endpoint(address=address, position=idx) for idx, address in enumerate(addresses, start=1)
        )
        if not self._endpoints:
            raise ValueError("EndpointSet requires at least one endpoint")

    def __iter__(self) -> Iterator[Endpoint]:
        return iter(self._endpoints)

    def __len__(self) -> int:
        return len(self._endpoints)

    def __getitem__(self, index: int) -> Endpoint:
        return self._endpoints[index]

    def __repr__(self) -> str:
        return f"EndpointSet({[e.address for e in self._endpoints]!r})"

    @property
    def addresses(self) -> list[str]:
        return [e.address for e in self._endpoints]


# ---------------------------------------------------------------------------
# Outbound Request: one per inbound call
# ---------------------------------------------------------------------------


@dataclass
class OutboundRequest:
    """A single inbound call, shaped for forwarding upstream.

    The request_id is generated once here and reused by every endpoint
    attempt of the dispatch sequence.
    """

    model: str
    project: str
    access_token: str
    payload: Any = None
    request_id: str = field(default_factory=new_request_id)

    def wire_body(self) -> dict[str, Any]:
        """JSON body sent to each endpoint."""
        return {
            "model": self.model,
            "userAgent": CLIENT_USER_AGENT,
            "requestType": REQUEST_TYPE,
            "project": self.project,
            "requestId": self.request_id,
            "request": self.payload,
        }

    def wire_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.access_token}",
            "Accept": "text/event-stream",
        }

    def __repr__(self) -> str:
        # access_token stays out of reprs and logs
        return f"OutboundRequest(model={self.model!r}, project={self.project!r}, request_id={self.request_id!r})"


# ---------------------------------------------------------------------------
# Outcome: tagged variant produced by the classifier
# ---------------------------------------------------------------------------


class OutcomeKind(str, Enum):
    """Classification of one endpoint attempt or of a whole dispatch."""

    SUCCESS = "success"
    RATE_LIMITED = "rate_limited"
    BAD_REQUEST = "bad_request"
    AUTH_ERROR = "auth_error"
    SERVER_ERROR = "server_error"  # non-terminal, next endpoint
    TRANSPORT_ERROR = "transport_error"  # non-terminal, next endpoint
    OTHER_ERROR = "other_error"
    EXHAUSTED = "exhausted"


_NON_TERMINAL = frozenset({OutcomeKind.SERVER_ERROR, OutcomeKind.TRANSPORT_ERROR})


@dataclass(frozen=True)
class Outcome:
    """Result of classifying an upstream response.

    status_code is the upstream HTTP status where one exists; body is the raw
    upstream body, passed through unmodified. message carries a diagnostic
    for transport failures and exhaustion.
    """

    kind: OutcomeKind
    status_code: int | None = None
    body: str | None = None
    message: str = ""

    @classmethod
    def success(cls, body: str, status_code: int = 200) -> Outcome:
        return cls(OutcomeKind.SUCCESS, status_code=status_code, body=body)

    @classmethod
    def rate_limited(cls, body: str) -> Outcome:
        return cls(OutcomeKind.RATE_LIMITED, status_code=429, body=body)

    @classmethod
    def bad_request(cls, body: str) -> Outcome:
        return cls(OutcomeKind.BAD_REQUEST, status_code=400, body=body)

    @classmethod
    def auth_error(cls, code: int, body: str) -> Outcome:
        return cls(OutcomeKind.AUTH_ERROR, status_code=code, body=body)

    @classmethod
    def server_error(cls, code: int) -> Outcome:
        return cls(OutcomeKind.SERVER_ERROR, status_code=code)

    @classmethod
    def transport_error(cls, message: str) -> Outcome:
        return cls(OutcomeKind.TRANSPORT_ERROR, message=message)

    @classmethod
    def other_error(cls, code: int, body: str) -> Outcome:
        return cls(OutcomeKind.OTHER_ERROR, status_code=code, body=body)

    @classmethod
    def exhausted(cls) -> Outcome:
        return cls(OutcomeKind.EXHAUSTED, status_code=503, message=EXHAUSTED_MESSAGE)

    @property
    def terminal(self) -> bool:
        return self.kind not in _NON_TERMINAL

    @property
    def http_status(self) -> int:
        """HTTP status the caller receives for this outcome."""
        if self.kind == OutcomeKind.SUCCESS:
            return 200
        if self.status_code is None:
            return 503
        return self.status_code

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the caller-facing envelope.

        status_code is omitted on success.
        """
        if self.kind == OutcomeKind.SUCCESS:
            return {"success": True, "data": self.body, "error": None}
        if self.kind == OutcomeKind.EXHAUSTED:
            error = self.message
        else:
            error = self.body if self.body is not None else self.message
        return {
            "success": False,
            "data": None,
            "error": error,
            "status_code": self.http_status,
        }

from typing import Any

from pydantic import BaseModel, Field

from antiproxy.gateway.types import OutboundRequest


class ProxyRequest(BaseModel):
    model: str
    project: str
    access_token: str
    request: Any = Field(..., description="Opaque upstream request payload, forwarded as-is")

    def to_outbound(self) -> OutboundRequest:
        """Shape into an OutboundRequest with a fresh request id."""
        return OutboundRequest(
            model=self.model,
            project=self.project,
            access_token=self.access_token,
            payload=self.request,
        )


class ProxyResponse(BaseModel):
    success: bool
    data: str | None = None
    error: str | None = None
    status_code: int | None = Field(None, description="Omitted on success")

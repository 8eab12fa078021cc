import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from antiproxy.gateway.dispatcher import Dispatcher
from antiproxy.schemas.proxy import ProxyRequest, ProxyResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["proxy"])


def get_dispatcher(request: Request) -> Dispatcher:
    return request.app.state.dispatcher


@router.post(
    "/proxy",
    response_model=ProxyResponse,
    responses={
        400: {"model": ProxyResponse},
        401: {"model": ProxyResponse},
        403: {"model": ProxyResponse},
        429: {"model": ProxyResponse},
        503: {"model": ProxyResponse, "description": "All endpoints failed"},
    },
)
async def proxy(body: ProxyRequest, dispatcher: Dispatcher = Depends(get_dispatcher)):
    outbound = body.to_outbound()
    logger.info("Received request %s (model=%s)", outbound.request_id, outbound.model)

    outcome = await dispatcher.dispatch(outbound)
    return JSONResponse(status_code=outcome.http_status, content=outcome.to_dict())


@router.get("/status")
async def status(dispatcher: Dispatcher = Depends(get_dispatcher)):
    """Dispatcher state: endpoints, gate occupancy, rate-limit timing."""
    return dispatcher.get_status()

"""
Profile Comparer - Comparison API

Profile aggregation plus the two streamed generations.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from ...core.errors import InvalidRequestError
from ...core.models import GenerationMode, GenerationRequest
from ...observability.logging import get_logger
from ...observability.middleware import get_request_id
from ...profiles.github import GitHubProfileClient
from ...streaming.normalizer import relay_generation
from ...streaming.upstream import UpstreamStreamAdapter
from ..dependencies import get_profile_client, get_upstream_adapter
from ..models import CompareRequest, CompareStreamRequest, RoastStreamRequest


router = APIRouter(prefix="/api", tags=["compare"])

logger = get_logger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def _event_stream(
    request: Request,
    adapter: UpstreamStreamAdapter,
    generation: GenerationRequest,
) -> StreamingResponse:
    logger.info(
        "Starting generation stream",
        request_id=generation.request_id,
        mode=generation.mode.value,
        user1=generation.profile1.username,
        user2=generation.profile2.username,
    )
    return StreamingResponse(
        relay_generation(adapter, generation, request.is_disconnected),
        media_type="text/event-stream",
        headers={**SSE_HEADERS, "X-Request-Id": generation.request_id},
    )


# ============================================================
# Profile Comparison
# ============================================================

@router.post("/compare")
async def compare_profiles(
    request: Request,
    body: CompareRequest,
    profile_client: GitHubProfileClient = Depends(get_profile_client),
):
    """
    Fetch and aggregate two GitHub profiles.

    Both profiles are fetched concurrently; the first failure is returned
    with its status code.
    """
    request_id = get_request_id(request)

    if not body.username1 or not body.username2:
        raise InvalidRequestError("Both username1 and username2 are required", request_id=request_id)

    if body.username1 == body.username2:
        raise InvalidRequestError("Please provide two different usernames", request_id=request_id)

    pair = await profile_client.fetch_profile_pair(body.username1, body.username2, request_id)
    return pair.to_dict()


# ============================================================
# Streamed Generations
# ============================================================

@router.post("/compare/stream")
async def stream_comparison(
    request: Request,
    body: CompareStreamRequest,
    adapter: UpstreamStreamAdapter = Depends(get_upstream_adapter),
):
    """
    Stream a neutral comparison as Server-Sent Events.

    Events: ``{"content": ...}`` deltas, then ``{"done": true}`` or
    ``{"error": ...}``.
    """
    request_id = get_request_id(request)

    if body.user1 is None or body.user2 is None:
        raise InvalidRequestError("Both user1 and user2 data are required", request_id=request_id)

    generation = GenerationRequest(
        profile1=body.user1.to_profile(),
        profile2=body.user2.to_profile(),
        mode=GenerationMode.NEUTRAL,
        request_id=request_id,
    )
    return _event_stream(request, adapter, generation)


@router.post("/roast/stream")
async def stream_roast(
    request: Request,
    body: RoastStreamRequest,
    adapter: UpstreamStreamAdapter = Depends(get_upstream_adapter),
):
    """
    Stream a roast as Server-Sent Events.

    ``roastType`` is validated before anything is sent upstream.
    """
    request_id = get_request_id(request)

    if body.user1 is None or body.user2 is None or not body.roast_type:
        raise InvalidRequestError("user1, user2, and roastType are required", request_id=request_id)

    mode = GenerationMode.from_roast_type(body.roast_type)

    generation = GenerationRequest(
        profile1=body.user1.to_profile(),
        profile2=body.user2.to_profile(),
        mode=mode,
        request_id=request_id,
    )
    return _event_stream(request, adapter, generation)

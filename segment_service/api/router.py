"""HTTP endpoints for segment management and membership reports."""

import logging
from typing import AsyncIterator

from fastapi import APIRouter, Depends, status
from fastapi.responses import StreamingResponse

from segment_service.api.schemas import (
    ErrorResponse,
    SegmentRequest,
    SegmentsList,
    SuccessResponse,
    UpdateRequest,
)
from segment_service.core.dependencies import get_segment_service
from segment_service.segments.service import SegmentService
from segment_service.segments.validation import parse_period, parse_user_id

logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid or missing parameters."},
    500: {"model": ErrorResponse, "description": "Database error / Internal Server Error."},
}
NOT_FOUND_RESPONSE = {404: {"model": ErrorResponse, "description": "Segment with the given slug not found."}}


@router.post(
    "/createSegment",
    tags=["segment"],
    status_code=status.HTTP_201_CREATED,
    response_model=SuccessResponse,
    responses=ERROR_RESPONSES,
)
async def create_segment(
    body: SegmentRequest,
    service: SegmentService = Depends(get_segment_service),
) -> SuccessResponse:
    """Create a new segment with the given slug."""
    await service.create_segment(body.slug)
    return SuccessResponse(success=f"segment with slug '{body.slug}' created")


@router.delete(
    "/deleteSegment",
    tags=["segment"],
    response_model=SuccessResponse,
    responses={**ERROR_RESPONSES, **NOT_FOUND_RESPONSE},
)
async def delete_segment(
    body: SegmentRequest,
    service: SegmentService = Depends(get_segment_service),
) -> SuccessResponse:
    """Delete the segment with the given slug and all users from it.

    Memberships removed this way are not recorded in the report.
    """
    await service.delete_segment(body.slug)
    return SuccessResponse(success=f"segment with slug '{body.slug}' deleted")


@router.post(
    "/updateUserSegments/{userID}",
    tags=["segment"],
    response_model=SuccessResponse,
    responses={**ERROR_RESPONSES, **NOT_FOUND_RESPONSE},
)
async def update_user_segments(
    userID: str,
    body: UpdateRequest,
    service: SegmentService = Depends(get_segment_service),
) -> SuccessResponse:
    """Add/remove a user from segments according to the given lists.

    Removals are applied before additions. If any segment is unknown, nothing is changed.
    """
    user_id = parse_user_id(userID)
    await service.update_user_segments(user_id, body.segments_to_add or [], body.segments_to_remove or [])
    return SuccessResponse(success=f"segment information for user with userID = {user_id} updated")


@router.get(
    "/getUserSegments/{userID}",
    tags=["segment"],
    response_model=SegmentsList,
    responses=ERROR_RESPONSES,
)
async def get_user_segments(
    userID: str,
    service: SegmentService = Depends(get_segment_service),
) -> SegmentsList:
    """Return the list of segments the user is a member of."""
    user_id = parse_user_id(userID)
    return SegmentsList(segments=await service.get_user_segments(user_id))


@router.get("/getReport/{period}", tags=["report"], response_class=StreamingResponse, responses=ERROR_RESPONSES)
async def get_report(
    period: str,
    service: SegmentService = Depends(get_segment_service),
) -> StreamingResponse:
    """Return the history of membership changes for the given month (yyyy-mm) as a CSV file."""
    return await _csv_response(service.report(period), "data.csv")


@router.get(
    "/getUserReport/{period}/{userID}",
    tags=["report"],
    response_class=StreamingResponse,
    responses=ERROR_RESPONSES,
)
async def get_user_report(
    period: str,
    userID: str,
    service: SegmentService = Depends(get_segment_service),
) -> StreamingResponse:
    """Return one user's history of membership changes for the given month as a CSV file."""
    # A malformed period is reported ahead of a malformed userID
    parse_period(period)
    chunks = service.report(period, parse_user_id(userID))
    return await _csv_response(chunks, "userdata.csv")


async def _csv_response(chunks: AsyncIterator[str], filename: str) -> StreamingResponse:
    # Pull the first row before headers go out, so a failing query still yields a 500
    try:
        first = await anext(chunks)
    except StopAsyncIteration:
        first = ""
    logger.debug(f"Streaming {filename}")

    async def body() -> AsyncIterator[str]:
        if first:
            yield first
        async for chunk in chunks:
            yield chunk

    return StreamingResponse(
        body(),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment;filename={filename}"},
    )

"""HTTP route definitions for the service."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from app.schemas import ErrorResponse, HealthResponse
from services.codec import codec_for
from services.dispatcher import Dispatcher, build_default_dispatcher
from services.errors import ErrorKind, ReadingLogError
from services.fields import parse_request_fields

OUTCOME_HEADER = "X-Reading-Outcome"

_STATUS_BY_KIND = {
    ErrorKind.no_credentials: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.invalid_credentials: status.HTTP_403_FORBIDDEN,
    ErrorKind.unknown_type: status.HTTP_400_BAD_REQUEST,
    ErrorKind.malformed_payload: 422,
    ErrorKind.storage_failure: status.HTTP_503_SERVICE_UNAVAILABLE,
}

router = APIRouter()


def get_dispatcher() -> Dispatcher:
    return build_default_dispatcher()


async def reading_log_error_handler(_request: Request, exc: ReadingLogError) -> JSONResponse:
    body = ErrorResponse(err=exc.message, kind=exc.kind)
    return JSONResponse(
        status_code=_STATUS_BY_KIND.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR),
        content=body.model_dump(mode="json"),
    )


@router.api_route(
    "/",
    methods=["GET", "POST"],
    summary="Submit a reading, or poll the newest readings for a log.",
    responses={
        status.HTTP_200_OK: {"description": "Newest-first JSON array of readings."},
        status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse},
        status.HTTP_403_FORBIDDEN: {"model": ErrorResponse},
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"model": ErrorResponse},
    },
)
async def submit_or_poll(
    request: Request,
    dispatcher: Dispatcher = Depends(get_dispatcher),
) -> Response:
    raw: dict[str, str] = dict(request.query_params)
    if request.method == "POST":
        form = await request.form()
        raw.update({name: value for name, value in form.items() if isinstance(value, str)})

    reading_request = parse_request_fields(raw)
    result = await run_in_threadpool(dispatcher.dispatch, reading_request)
    body = codec_for(result.key.reading_type).encode(result.readings)
    return Response(
        content=body,
        media_type="application/json",
        headers={OUTCOME_HEADER: result.outcome.value},
    )


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
    response_model=HealthResponse,
)
async def healthcheck() -> HealthResponse:
    return HealthResponse()

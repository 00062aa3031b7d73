"""Lab test search API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Body, Depends, Request, status
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from codeset_builder.core.database import get_session
from codeset_builder.schemas.labtest import ErrorResponse, LabTestSearchRequest, LabTestSearchResponse
from codeset_builder.services.labtest_search import LabTestSearchService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Lab Test Search"])


def _error_message(exc: SQLAlchemyError) -> str:
    """Underlying driver message, without SQLAlchemy's statement dump."""
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig)
    return str(exc) or "Internal server error"


async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException) -> Response:
    """Render 405s in the API's error envelope; defer everything else to FastAPI."""
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        return JSONResponse(
            status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
            content=ErrorResponse(error="Method not allowed").model_dump(),
            headers=exc.headers,
        )
    return await http_exception_handler(request, exc)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request validation failures in the API's error envelope."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error['msg']}" if location else error["msg"])
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(error="; ".join(messages) or "Invalid request").model_dump(),
    )


@router.options(
    "/labtest-search",
    summary="Lab test search preflight",
)
def labtest_search_preflight() -> dict[str, bool]:
    """Acknowledge a preflight request without doing any work."""
    return {"ok": True}


@router.post(
    "/labtest-search",
    response_model=LabTestSearchResponse,
    responses={
        status.HTTP_405_METHOD_NOT_ALLOWED: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
    summary="Search lab tests",
    description="Search LOINC, CPT4, HCPCS and SNOMED lab tests in the Measurement domain, "
    "with their LOINC property/scale/system/time and the LOINC panels containing them.",
)
def search_lab_tests(
    request: Annotated[LabTestSearchRequest | None, Body()] = None,
    session: Session = Depends(get_session),
) -> LabTestSearchResponse | JSONResponse:
    """Search lab test concepts.

    A blank ``searchterm`` returns the full scoped list (lab tests capped at
    ``settings.search_result_limit``, plus their panels).

    Args:
        request: Search parameters; the body may be omitted.
        session: Database session.

    Returns:
        LabTestSearchResponse with ordered rows, or a 500 error envelope
        when the query fails.
    """
    searchterm = request.searchterm if request is not None else ""
    logger.info(f"Lab test search: searchterm='{searchterm}'")

    try:
        results = LabTestSearchService(session).search_results(searchterm)
    except SQLAlchemyError as e:
        logger.exception(f"Lab test search failed: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error=_error_message(e)).model_dump(),
        )

    logger.info(f"Sending lab test search response with {len(results)} results")
    return LabTestSearchResponse(data=results)

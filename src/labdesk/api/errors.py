"""HTTP mapping for LabDesk business failures.

Protean's own handlers cover the base exception types; the handlers added
here take precedence for the LabDesk subclasses because Starlette resolves
exception handlers along the exception's MRO. A repository miss surfaces as
``ObjectNotFoundError`` and is answered the same way as ``NotFound``.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError
from protean.integrations.fastapi import register_exception_handlers

from labdesk.errors import Conflict, Forbidden, InvalidState, NotFound, Unavailable, Unprocessable, error_messages

logger = structlog.get_logger(__name__)

STATUS_CODES = {
    ObjectNotFoundError: 404,
    NotFound: 404,
    InvalidState: 409,
    Forbidden: 403,
    Conflict: 409,
    Unprocessable: 422,
    Unavailable: 503,
}


async def _domain_error(request: Request, exc: Exception) -> JSONResponse:
    status_code = next(STATUS_CODES[cls] for cls in type(exc).__mro__ if cls in STATUS_CODES)
    logger.info(
        "Request rejected",
        path=request.url.path,
        error=type(exc).__name__,
        status_code=status_code,
    )
    return JSONResponse(status_code=status_code, content={"error": error_messages(exc)})


def register_error_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)
    for exc_class in STATUS_CODES:
        app.add_exception_handler(exc_class, _domain_error)

"""Last-resort handler: a MermaidStudioError raised inside a route becomes an envelope."""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from ..exceptions import MermaidStudioError
from ..schemas.command import CommandResponse

logger = logging.getLogger(__name__)


async def studio_exception_handler(request: Request, exc: MermaidStudioError) -> JSONResponse:
    """Answer 200 with a failed envelope whose ``code`` and ``kind`` are the error category.

    Commands report store failures themselves, so this only sees errors from
    the HTTP layer (dependencies, startup state).
    """
    logger.error(
        "Unhandled %s on %s %s",
        exc.error_code.value, request.method, request.url.path,
        extra={"error": exc.to_dict()},
    )
    envelope = CommandResponse.fail(exc.error_code.value, exc.message, exc.error_code.value)
    return JSONResponse(status_code=200, content=envelope.to_payload())

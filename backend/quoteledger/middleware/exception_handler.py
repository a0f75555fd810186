"""Exception handler middleware for structured error responses."""

import logging
import math
from fastapi import Request
from fastapi.responses import JSONResponse
from ..exceptions import QuoteLedgerException

logger = logging.getLogger(__name__)


async def quoteledger_exception_handler(request: Request, exc: QuoteLedgerException) -> JSONResponse:
    """
    Convert a QuoteLedgerException into its JSON error body.

    Client errors are logged at WARNING, server errors at ERROR. BUSY
    responses carry a ``Retry-After`` header so callers can back off.
    """
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"QuoteLedgerException: {exc.error_code.value}",
        extra={
            "error_code": exc.error_code.value,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details,
            "status_code": exc.status_code
        }
    )

    headers = None
    retry_after = exc.details.get("retry_after")
    if retry_after is not None:
        headers = {"Retry-After": str(max(1, math.ceil(retry_after)))}

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=headers,
    )

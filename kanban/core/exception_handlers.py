from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from kanban.core.exceptions import DomainError
from kanban.logs.server_log import api_logger


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Convert a domain error into a JSON response with field-scoped messages"""
    log_message = (
        f"{type(exc).__name__} on {request.method} {request.url.path}: "
        f"{exc.message} | Status: {exc.status_code}"
    )
    if exc.status_code >= 500:
        api_logger.error(log_message)
    else:
        api_logger.warning(log_message)

    content = {"detail": exc.message}
    if exc.errors:
        content["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """Attach domain error handlers to the application"""
    app.add_exception_handler(DomainError, domain_error_handler)

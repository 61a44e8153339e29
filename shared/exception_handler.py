import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shared.exceptions import DomainError

logger = structlog.get_logger(__name__)


def setup_exception_handlers(app: FastAPI):

    @app.exception_handler(DomainError)
    async def domain_exception_handler(request: Request, exc: DomainError):
        logger.info(
            "domain_error",
            path=request.url.path,
            error=type(exc).__name__,
            detail=exc.message,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "error": type(exc).__name__},
        )

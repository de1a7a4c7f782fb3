import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from ...domain.errors import StoreUnavailable, YogaError

logger = structlog.get_logger()


def _error_response(status_code: int, message: str, code: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": message, "code": code})


def register_error_handlers(app: FastAPI) -> None:

    @app.exception_handler(YogaError)
    async def yoga_error_handler(request: Request, exc: YogaError):
        logger.info("request_rejected", path=request.url.path, code=exc.code, status_code=exc.status_code)
        return _error_response(exc.status_code, exc.message, exc.code)

    @app.exception_handler(SQLAlchemyError)
    async def store_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error("store_error", path=request.url.path, error=str(exc))
        err = StoreUnavailable()
        return _error_response(err.status_code, err.message, err.code)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        # наружу не отдаём детали
        logger.exception("unhandled_error", path=request.url.path)
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", "internal_error")

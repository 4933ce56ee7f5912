# fieldportal/core/exceptions.py
import logging

from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_500_INTERNAL_SERVER_ERROR

logger = logging.getLogger("fieldportal.errors")


def _driver_message(exc: SQLAlchemyError) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


async def validation_exception_handler(request, exc: RequestValidationError):
    logger.warning("Validation error on %s %s: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=HTTP_400_BAD_REQUEST,
                        content={"detail": jsonable_encoder(exc.errors())})


async def integrity_error_handler(request, exc: IntegrityError):
    message = _driver_message(exc)
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, message)
    return JSONResponse(status_code=HTTP_400_BAD_REQUEST, content={"detail": message})


async def database_error_handler(request, exc: SQLAlchemyError):
    message = _driver_message(exc)
    logger.error("Database error on %s %s: %s", request.method, request.url.path, message)
    return JSONResponse(status_code=HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": message})

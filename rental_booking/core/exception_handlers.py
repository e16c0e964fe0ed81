from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from rental_booking.core.exceptions import GlobalException
from rental_booking.core.errors import ErrorCode
from rental_booking.core.messages import ErrorMessage
from rental_booking.core.middlewares import logger
from rental_booking.utils.response import ErrorDetail, error_response


def register_exception_handlers(app: FastAPI):
    # ---------- Custom Domain Errors ----------
    @app.exception_handler(GlobalException)
    async def handle_global_exception(
        request: Request, exc: GlobalException
    ):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(
                message=exc.message,
                status_code=exc.status_code,
                errors=[
                    ErrorDetail(
                        code=exc.error_code,
                        field=exc.field,
                        message=exc.message,
                    )
                ],
            ).model_dump(),
        )

    # ---------- Request Body / Query Errors ----------
    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(
        request: Request, exc: RequestValidationError
    ):
        return JSONResponse(
            status_code=422,
            content=error_response(
                message=ErrorMessage.REQUEST_INVALID,
                status_code=422,
                errors=[
                    ErrorDetail(
                        code=ErrorCode.REQUEST_VALIDATION_ERROR,
                        field=".".join(str(part) for part in err.get("loc", ())[1:]) or None,
                        message=err.get("msg", ""),
                    )
                    for err in exc.errors()
                ],
            ).model_dump(),
        )

    # ---------- Database Errors ----------
    @app.exception_handler(SQLAlchemyError)
    async def handle_database_error(
        request: Request, exc: SQLAlchemyError
    ):
        logger.exception("Database error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content=error_response(
                message=ErrorMessage.DATABASE_FAILURE,
                status_code=500,
                errors=[
                    ErrorDetail(
                        code=ErrorCode.DATABASE_ERROR,
                        message=str(exc),
                    )
                ],
            ).model_dump(),
        )

    # ---------- Catch-all (500) ----------
    @app.exception_handler(Exception)
    async def handle_unhandled_exception(
        request: Request, exc: Exception
    ):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content=error_response(
                message=ErrorMessage.SERVER_ERROR,
                status_code=500,
                errors=[
                    ErrorDetail(
                        code=ErrorCode.INTERNAL_SERVER_ERROR,
                        message=str(exc),
                    )
                ],
            ).model_dump(),
        )

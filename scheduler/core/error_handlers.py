import logging
from typing import Any, Sequence

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from scheduler.core import config
from scheduler.core.errors import SchedulerError, StorageError, StorageTransientError

logger = logging.getLogger(__name__)

REQUEST_LOCATIONS = {'body', 'query', 'path'}
INTERNAL_ERROR_MESSAGE = 'Internal server error'


def format_validation_errors(errors: Sequence[Any]) -> list[dict[str, str]]:
    formatted = []
    for error in errors:
        location = [str(part) for part in error.get('loc', ())]
        if location and location[0] in REQUEST_LOCATIONS:
            location = location[1:]
        formatted.append({'field': '.'.join(location), 'message': error.get('msg', '')})
    return formatted


def _internal_error_response(name: str, status_code: int, message: str = INTERNAL_ERROR_MESSAGE) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            'message': message,
            'error': {
                'name': name,
                'message': message,
                'statusCode': status_code,
                'details': None,
            },
        },
    )


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(SchedulerError)
    async def scheduler_error_handler(request: Request, exc: SchedulerError) -> JSONResponse:
        if isinstance(exc, StorageError):
            logger.error('Storage failure on %s %s: %s', request.method, request.url.path, exc.details or exc.message)
            if config.is_production():
                # Transient messages carry no driver text, only the retry hint.
                message = exc.message if isinstance(exc, StorageTransientError) else INTERNAL_ERROR_MESSAGE
                return _internal_error_response(exc.name, exc.status_code, message)

        return JSONResponse(
            status_code=exc.status_code,
            content=jsonable_encoder({'message': exc.message, 'error': exc.to_dict()}),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception('Unhandled error on %s %s', request.method, request.url.path)
        return _internal_error_response('InternalServerError', status.HTTP_500_INTERNAL_SERVER_ERROR)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning('Validation error for %s: %s', request.url.path, exc.errors())
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=jsonable_encoder({
                'message': 'Validation failed',
                'error': {
                    'name': 'ValidationError',
                    'message': 'Validation failed',
                    'errors': format_validation_errors(exc.errors()),
                },
            }),
        )

from rest_framework import status
from rest_framework.response import Response

from ..errors import NotFound, ReviewError


def error_response(code: str, message: str, http_status: int) -> Response:
    return Response({
        'error': {
            'code': code,
            'message': message
        }
    }, status=http_status)


def validation_error(message: str) -> Response:
    return error_response('VALIDATION_ERROR', message, status.HTTP_400_BAD_REQUEST)


def server_error() -> Response:
    return error_response('SERVER_ERROR', 'Internal server error', status.HTTP_500_INTERNAL_SERVER_ERROR)


def domain_error(exc) -> Response:
    """Ответ для доменной ошибки: код и HTTP-статус берутся из класса ошибки."""
    if isinstance(exc, NotFound):
        return error_response(exc.code, exc.message, exc.status_code)
    if isinstance(exc, ReviewError):
        return error_response(exc.code, exc.detail, exc.status_code)
    raise TypeError(f'unsupported error type: {type(exc).__name__}')

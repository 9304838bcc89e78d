from typing import Dict, Optional

from fastapi import status
from fastapi.responses import JSONResponse

from session_engine.domain.errors import (
    AuthenticationError,
    CSRFError,
    InvalidTokenError,
    NotAuthorizedError,
    PersistenceError,
    SessionError,
)
from session_engine.result import Error


class ClientError(Exception):
    def __init__(self, base_error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        self.base_error = base_error
        self.status_code = status_code
        super().__init__(base_error.message)


class ServerError(Exception):
    def __init__(self, base_error: Error):
        self.base_error = base_error
        super().__init__(base_error.message)


SESSION_ERROR_STATUS = {
    CSRFError: status.HTTP_403_FORBIDDEN,
    NotAuthorizedError: status.HTTP_403_FORBIDDEN,
    AuthenticationError: status.HTTP_401_UNAUTHORIZED,
    InvalidTokenError: status.HTTP_401_UNAUTHORIZED,
    PersistenceError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(exc: SessionError) -> int:
    for error_class, status_code in SESSION_ERROR_STATUS.items():
        if isinstance(exc, error_class):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(
    base_error: Error, status_code: int, headers: Optional[Dict[str, str]] = None
) -> JSONResponse:
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        message = "Internal server error"
    else:
        message = base_error.message
    error_dict = {"code": base_error.code, "message": message}
    return JSONResponse(status_code=status_code, content={"error": error_dict}, headers=headers)

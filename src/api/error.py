from fastapi import status
from libs.result import Error


class ApiError(Exception):
    """Carries a service Error up to the app-level exception handlers"""

    def __init__(self, base_error: Error):
        self.base_error = base_error
        super().__init__(base_error.message)


class ClientError(ApiError):
    def __init__(self, base_error: Error, status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(base_error)
        self.status_code = status_code


class ServerError(ApiError):
    """Rendered as 500 with a generic message; the code is kept for logs"""

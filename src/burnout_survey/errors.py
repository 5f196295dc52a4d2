"""Error taxonomy shared by the gateway, the wizard and the web layer."""

from typing import Optional


class SurveyError(Exception):
    """Base class for every recoverable application error."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SurveyError):
    """Field-scoped validation failure. Never leaves the form that raised it."""

    def __init__(self, errors: dict[str, str]):
        super().__init__("Please fill all required fields correctly")
        self.errors = errors


class ApiError(SurveyError):
    """Non-2xx answer from the statistics service."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class FetchError(ApiError):
    """The statistics service could not be reached at all."""

    def __init__(self, message: str):
        super().__init__(message, status_code=None)

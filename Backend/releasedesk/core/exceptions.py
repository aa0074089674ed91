from fastapi import HTTPException
from typing import Any, Dict, Optional


class ReleaseDeskException(HTTPException):
    """Base exception for the Release Desk API.

    ``detail`` becomes the ``error`` field of the JSON error body, ``message``
    an optional human-readable explanation, and ``extra`` any additional
    fields the client should see (e.g. the offending file name).
    """
    def __init__(
        self,
        status_code: int,
        detail: str,
        message: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.message = message
        self.extra = extra or {}

    def to_response(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": False, "error": self.detail}
        if self.message:
            body["message"] = self.message
        body.update(self.extra)
        return body


class BadRequestError(ReleaseDeskException):
    """Missing or invalid request field"""
    def __init__(self, detail: str, message: Optional[str] = None):
        super().__init__(status_code=400, detail=detail, message=message)


class NotFoundException(ReleaseDeskException):
    """Resource not found"""
    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            status_code=404,
            detail=f"{resource} not found",
            message=f"No {resource.lower()} found with ID \"{resource_id}\""
        )


class DuplicateError(ReleaseDeskException):
    """Resource already exists"""
    def __init__(self, field: str, value: str, message: Optional[str] = None):
        super().__init__(
            status_code=409,
            detail=f"{field} '{value}' already exists",
            message=message
        )


class UnprocessableContentError(ReleaseDeskException):
    """Uploaded content failed validation"""
    def __init__(self, detail: str, file: str, reason: str):
        super().__init__(
            status_code=422,
            detail=detail,
            extra={"file": file, "reason": reason}
        )

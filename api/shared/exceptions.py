"""Custom API exceptions.

Every failure of the versioning engine maps to exactly one of these kinds.
Collaborator-specific errors (SQLAlchemy, storage backend, OS) are wrapped
into them at the service boundary.
"""

from fastapi import HTTPException, status


class APIException(HTTPException):
    """Base exception for API HTTP errors."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)

    def __str__(self) -> str:
        return str(self.detail)


class NotFoundError(APIException):
    """Resource not found (HTTP 404)."""

    def __init__(self, resource: str, resource_id: int | str):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} with id {resource_id} not found",
        )


class ForbiddenError(APIException):
    """Acting user does not own the resource (HTTP 403)."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
        )


class BadRequestError(APIException):
    """Invalid parameters or mismatched resources (HTTP 400)."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )


class QuotaExceededError(APIException):
    """Not enough storage quota left (HTTP 507)."""

    def __init__(self, requested_bytes: int):
        self.requested_bytes = requested_bytes
        super().__init__(
            status_code=status.HTTP_507_INSUFFICIENT_STORAGE,
            detail=f"Insufficient storage quota for {requested_bytes} bytes",
        )


class ConflictError(APIException):
    """Data conflict (HTTP 409)."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
        )


class StorageWriteError(APIException):
    """Content could not be written to the content store (HTTP 502)."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=detail,
        )


class StorageReadError(APIException):
    """Content could not be read from the content store (HTTP 502)."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=detail,
        )


class InternalError(APIException):
    """Unexpected failure (HTTP 500)."""

    def __init__(self, detail: str = "Internal error"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
        )

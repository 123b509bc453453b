"""
HTTP exceptions for API layer.

These exceptions are used ONLY in API routers to return proper HTTP responses.
They should NOT be used in services or repositories.
"""

from typing import Self

from fastapi import HTTPException, status


class CustomHTTPException(HTTPException):
    """Base HTTP exception with context support."""

    def with_context(self, detail: str) -> Self:
        """
        Add context to an HTTP exception.

        Args:
            detail: Additional information about the error

        Returns:
            A new HTTPException with updated details
        """
        return type(self)(status_code=self.status_code, detail=detail, headers=self.headers)


NOT_FOUND = CustomHTTPException(
    status_code=status.HTTP_404_NOT_FOUND,
    detail="The requested resource was not found",
)

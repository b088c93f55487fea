"""Mapping of service errors to HTTP errors."""

from fastapi import HTTPException, status


def http_error_from_value_error(e: ValueError) -> HTTPException:
    """404 for missing entities, 400 for any other rule violation."""
    message = str(e)
    if "not found" in message.lower():
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


def internal_error(action: str, e: Exception) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}: {str(e)}",
    )

import logging
from typing import Any

from fastapi import status

logger = logging.getLogger(__name__)


class WordRecError(Exception):
    """Base exception of the recommendation service"""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        logger.error(f"{self.__class__.__name__}: {message}")
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.error_code or "InternalServerError",
            "message": self.message,
            "details": self.details,
        }


class UserNotFoundError(WordRecError):
    """Raised when a personalized request names an unknown user"""

    def __init__(self, user_id: str):
        super().__init__(
            message=f"User '{user_id}' not found",
            error_code="USER_NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"user_id": user_id},
        )


class WordNotFoundError(WordRecError):
    """Raised when a dictionary entry cannot be found"""

    def __init__(self, word_id: str):
        super().__init__(
            message=f"Word '{word_id}' not found",
            error_code="WORD_NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"word_id": word_id},
        )


class RecommendationError(WordRecError):
    """Raised when recommendation generation fails"""

    def __init__(self, message: str, user_id: str | None = None):
        full_message = "Recommendation error"
        if user_id:
            full_message += f" for user {user_id}"
        full_message += f": {message}"
        super().__init__(
            message=full_message,
            error_code="RECOMMENDATION_ERROR",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


class FeedbackError(WordRecError):
    """Raised when feedback cannot be persisted"""

    def __init__(self, message: str, user_id: str | None = None):
        full_message = "Feedback error"
        if user_id:
            full_message += f" for user {user_id}"
        full_message += f": {message}"
        super().__init__(
            message=full_message,
            error_code="FEEDBACK_ERROR",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


class CacheError(WordRecError):
    """Raised when the recommendation cache cannot be updated"""

    def __init__(self, message: str, user_id: str | None = None):
        full_message = "Recommendation cache error"
        if user_id:
            full_message += f" for user {user_id}"
        full_message += f": {message}"
        super().__init__(
            message=full_message,
            error_code="CACHE_ERROR",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

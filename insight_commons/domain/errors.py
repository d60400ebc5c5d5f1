"""Error signals raised by the domain layer.

Each error carries a machine-readable ``code`` so the API boundary can
render it without inspecting the message text.
"""

from typing import Any, Dict, Optional


class InsightCommonsError(Exception):
    """Base class for all domain errors."""

    code = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert the error to the API error body."""
        body: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class InvalidInputError(InsightCommonsError):
    """Input passed structural validation but is still unusable."""

    code = "INVALID_REQUEST"


class NotFoundError(InsightCommonsError):
    """A referenced contribution or agent does not exist."""

    code = "NOT_FOUND"


class ForbiddenError(InsightCommonsError):
    """The caller may not perform this operation."""

    code = "FORBIDDEN"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        if code:
            self.code = code


class ConflictError(InsightCommonsError):
    """A near-identical contribution already exists."""

    code = "DUPLICATE_CONTRIBUTION"

    def __init__(self, message: str, existing_id: str, similarity: Optional[float] = None):
        details: Dict[str, Any] = {"existing_id": existing_id}
        if similarity is not None:
            details["similarity"] = similarity
        super().__init__(message, details)
        self.existing_id = existing_id


class InternalError(InsightCommonsError):
    """A collaborator (embedding, store, validation lookup) failed."""

    code = "INTERNAL_ERROR"

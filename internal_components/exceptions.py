"""
Exceptions raised while mapping a source document to internal components

Exception Hierarchy:
- InternalComponentsMapperError (base)
  - NotEligibleForPublishError
  - MarkedDeletedError
  - InvalidContentError
    - UntransformableContentError
  - MissingRequiredFieldError
  - IdentityResolutionError
    - UuidResolverError
  - NoInternalComponentsError
  - TransformationError
  - DocumentStoreApiError

Every error carries the UUID of the document being mapped when one is known.
"""

from typing import Any, Dict, Optional


class InternalComponentsMapperError(Exception):
    """
    Base exception for all mapping errors.

    Attributes:
        message: Human-readable error description
        uuid: UUID of the source document (if known)
        details: Additional context information
    """

    def __init__(
        self,
        message: str,
        uuid: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.uuid = uuid
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON serialization"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "uuid": self.uuid,
            "details": self.details,
        }


class NotEligibleForPublishError(InternalComponentsMapperError):
    """Raised when the document is not eligible for publishing"""

    def __init__(self, uuid: str, reason: Optional[str] = None) -> None:
        details = {"reason": reason} if reason else None
        super().__init__(f"[{uuid}] not eligible for publishing", uuid, details)


class MarkedDeletedError(InternalComponentsMapperError):
    """Raised when the document is marked as deleted in the CMS"""

    def __init__(self, uuid: str) -> None:
        super().__init__(f"[{uuid}] marked as deleted", uuid)


class InvalidContentError(InternalComponentsMapperError):
    """Raised when the document content cannot be turned into a valid component"""


class UntransformableContentError(InvalidContentError):
    """Raised when the transformed article body is blank outside the allowed cases"""

    def __init__(self, uuid: str, message: Optional[str] = None) -> None:
        super().__init__(
            message
            or "Not a valid article for publication - transformed article body is blank",
            uuid,
        )


class MissingRequiredFieldError(InternalComponentsMapperError):
    """Raised when a field required by the document's source code is blank"""

    def __init__(self, uuid: str, field_name: str) -> None:
        self.field_name = field_name
        super().__init__(
            f"[{uuid}] missing required field: {field_name}",
            uuid,
            {"field": field_name},
        )


class IdentityResolutionError(InternalComponentsMapperError):
    """Raised when the canonical identity of a content placeholder can't be resolved"""


class UuidResolverError(IdentityResolutionError):
    """Raised by the blog UUID resolver when it can't resolve a UUID"""


class NoInternalComponentsError(InternalComponentsMapperError):
    """Raised when the document has no internal components to contribute"""


class TransformationError(InternalComponentsMapperError):
    """Wraps low-level parse or serialization faults"""


class DocumentStoreApiError(InternalComponentsMapperError):
    """Raised when the document store can't be queried"""

"""
Custom Exceptions for Complyva
==============================

Every core operation either returns a value or raises one of these.
The API layer maps them to HTTP statuses; callers inside the core never
need to catch storage-driver exceptions directly.

Usage:
    from complyva.core.exceptions import NotFoundError, AlreadyLinkedError

    if entity is None:
        raise NotFoundError("RISK", risk_id)

    try:
        await engine.derive(org_id, Transformation.INCIDENT_TO_RISK, incident_id)
    except AlreadyLinkedError as e:
        logger.info(f"Already derived: {e.details['target_id']}")
"""

from typing import Optional, Any, Dict


class ComplyvaError(Exception):
    """Base exception for all Complyva errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Resource Errors (404-type)
# ============================================

class NotFoundError(ComplyvaError):
    """
    Id does not resolve inside the caller's organisation.

    Raised identically for "belongs to another org" and "never existed" so
    existence is never leaked across tenants.
    """

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with ID '{resource_id}' not found",
            code="NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


# ============================================
# Validation Errors (400-type)
# ============================================

class InvalidInputError(ComplyvaError):
    """Field value violates a domain constraint"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="INVALID_INPUT", details=details)


class AlreadyLinkedError(ComplyvaError):
    """A derivation already produced a target of this type for the source"""

    status_code = 409

    def __init__(self, source_type: str, source_id: str, target_type: str, target_id: str):
        super().__init__(
            f"{source_type} '{source_id}' already has a generated {target_type}",
            code="ALREADY_LINKED",
            details={
                "source_type": source_type,
                "source_id": source_id,
                "target_type": target_type,
                "target_id": target_id,
            }
        )


# ============================================
# Authorization Errors
# ============================================

class UnauthorizedError(ComplyvaError):
    """Caller role is insufficient for the requested mutation"""

    status_code = 403

    def __init__(self, message: str = "Not authorized", role: Optional[str] = None):
        super().__init__(message, code="NOT_AUTHORIZED")
        if role:
            self.details["role"] = role


# ============================================
# Availability Errors (503-type)
# ============================================

class UnavailableError(ComplyvaError):
    """Storage or a collaborator timed out or faulted; always safe to retry"""

    status_code = 503

    def __init__(self, message: str = "Service temporarily unavailable", operation: Optional[str] = None):
        super().__init__(message, code="UNAVAILABLE", details={"retryable": True})
        if operation:
            self.details["operation"] = operation


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: ComplyvaError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return {
        "success": False,
        "error": error.to_dict()
    }

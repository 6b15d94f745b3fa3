"""
Domain exceptions

Every exception extends the atams HTTP-aware hierarchy, so the handlers
registered by setup_exception_handlers() render them as
{"success": false, "message": ..., "details": {"code": ..., "kind": ...}}.

kind tells a client whether retrying with different input makes sense:
- precondition: the caller is not allowed / not in a position to do this
- conflict: the operation already happened or the resource is exhausted
- transition: the attendance state machine refused the move
- validation: malformed or missing input
- token: QR token could not be accepted
- internal: the system failed
"""
from typing import Any, Dict, Optional

from atams.exceptions import (
    AppException,
    BadRequestException,
    ConflictException,
    ForbiddenException,
    InternalServerException,
    NotFoundException,
    UnprocessableEntityException,
)


class DomainError(AppException):
    """
    Base of every domain error. Concrete classes also inherit the atams HTTP
    exception that fixes their status code; code and kind go into details.
    """
    code = "INTERNAL"
    kind = "internal"
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        payload = {"code": self.code, "kind": self.kind}
        if details:
            payload.update(details)
        super().__init__(message or self.default_message, payload)


class TransitionError(DomainError):
    """Marker for every refusal raised by the attendance state machine"""
    kind = "transition"


# 404

class ResourceNotFoundException(DomainError, NotFoundException):
    code = "NOT_FOUND"
    kind = "precondition"
    default_message = "Not found"


# 403

class PermissionDeniedException(DomainError, ForbiddenException):
    code = "PERMISSION_DENIED"
    kind = "precondition"
    default_message = "Permission denied"


class NotApprovedException(DomainError, ForbiddenException):
    code = "NOT_APPROVED"
    kind = "precondition"
    default_message = "You are not approved to attend this event"


class AttendanceForbiddenException(TransitionError, ForbiddenException):
    code = "FORBIDDEN"
    default_message = "You have been marked as absent. Contact admin for assistance"


# 400

class InvalidStateException(DomainError, BadRequestException):
    code = "INVALID_STATE"
    kind = "precondition"
    default_message = "Operation not allowed in the current state"


class EventTimeInvalidException(InvalidStateException):
    code = "EVENT_TIME_INVALID"
    default_message = "Check-in is only allowed within the event time window"


class InvalidRoleException(DomainError, BadRequestException):
    code = "INVALID_ROLE"
    kind = "precondition"
    default_message = "Invalid role for this event"


class InvalidTransitionException(TransitionError, BadRequestException):
    code = "INVALID_TRANSITION"
    default_message = "Invalid attendance transition"


class NotCheckedInException(InvalidTransitionException):
    code = "NOT_CHECKED_IN"
    default_message = "You must check-in first before checking out"


class TokenExpiredException(DomainError, BadRequestException):
    code = "TOKEN_EXPIRED"
    kind = "token"
    default_message = "QR code has expired"


class InvalidTokenException(DomainError, BadRequestException):
    code = "INVALID_TOKEN"
    kind = "token"
    default_message = "Invalid QR code"


# 409

class AlreadyCheckedInException(TransitionError, ConflictException):
    code = "ALREADY_CHECKED_IN"
    kind = "conflict"
    default_message = "Already checked in"


class AlreadyCheckedOutException(TransitionError, ConflictException):
    code = "ALREADY_CHECKED_OUT"
    kind = "conflict"
    default_message = "Already checked out"


class AlreadyAppliedException(DomainError, ConflictException):
    code = "ALREADY_APPLIED"
    kind = "conflict"
    default_message = "You have already applied for this event"


class AlreadyApprovedException(DomainError, ConflictException):
    code = "ALREADY_APPROVED"
    kind = "conflict"
    default_message = "Participant already approved"


class AlreadyRejectedException(DomainError, ConflictException):
    code = "ALREADY_REJECTED"
    kind = "conflict"
    default_message = "Participant already rejected"


class RoleFullException(DomainError, ConflictException):
    code = "ROLE_FULL"
    kind = "conflict"
    default_message = "Role is full"


# 422

class ValidationException(DomainError, UnprocessableEntityException):
    code = "VALIDATION_ERROR"
    kind = "validation"
    default_message = "Validation error"


# 500

class InternalErrorException(DomainError, InternalServerException):
    pass

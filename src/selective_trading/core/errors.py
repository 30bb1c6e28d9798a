"""Domain exceptions raised by the service layer.

Services raise these; the API layer translates them into HTTP responses.
None of them is fatal to the process, each is scoped to a single request.
"""

from __future__ import annotations


class OrderingError(RuntimeError):
    """Base class for all domain failures of the ordering service."""


class StorageUnavailable(OrderingError):
    """The backing database could not be reached or timed out.

    Transient: the caller may retry the whole request.
    """


class VerificationError(OrderingError):
    """Base class for verification code outcomes other than success."""


class VerificationNotFound(VerificationError):
    """No pending verification code exists for the phone and purpose."""


class CodeMismatch(VerificationError):
    """A pending code exists but the submitted code differs.

    The pending record is kept so the user can retry before expiry.
    """


class CodeExpired(VerificationError):
    """The pending code is past its expiry and has been discarded."""


class NotificationDeliveryFailed(OrderingError):
    """The verification email could not be dispatched; issuance was aborted."""


class OrderRuleViolation(OrderingError):
    """An order request breaks a business rule (minimum size, edit window)."""

"""
Verification failures.

Every failed verification surfaces as a VerificationException carrying
exactly one VerificationStatus. Messages never carry key material.
"""

from enum import Enum
from typing import Optional


class VerificationStatus(str, Enum):
    VERIFICATION_FAILURE = "verification_failure"
    INVALID_CERTIFICATE = "invalid_certificate"
    INVALID_APP_IDENTIFIER = "invalid_app_identifier"
    INVALID_ENVIRONMENT = "invalid_environment"


class VerificationException(Exception):
    """Raised when a signed payload cannot be trusted.

    The caller branches on `status`; `reason` is a short diagnostic only.
    """

    def __init__(self, status: VerificationStatus, reason: Optional[str] = None):
        self.status = status
        self.reason = reason
        message = status.value if reason is None else f"{status.value}: {reason}"
        super().__init__(message)

    @classmethod
    def verification_failure(cls, reason: Optional[str] = None) -> "VerificationException":
        """JWS malformed, signature invalid, or chain of trust not established."""
        return cls(VerificationStatus.VERIFICATION_FAILURE, reason)

    @classmethod
    def invalid_certificate(cls, reason: Optional[str] = None) -> "VerificationException":
        """A chain certificate is outside its validity window."""
        return cls(VerificationStatus.INVALID_CERTIFICATE, reason)

    @classmethod
    def invalid_app_identifier(cls) -> "VerificationException":
        return cls(VerificationStatus.INVALID_APP_IDENTIFIER)

    @classmethod
    def invalid_environment(cls) -> "VerificationException":
        return cls(VerificationStatus.INVALID_ENVIRONMENT)

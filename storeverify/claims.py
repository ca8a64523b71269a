from typing import Any, Optional

from storeverify.common.errors import VerificationException
from storeverify.common.models import (
    DataIdentity,
    Environment,
    ExternalPurchaseTokenIdentity,
    NotificationIdentity,
    SummaryIdentity,
)

# checked in this order; the first sub-object present wins
IDENTITY_SOURCES = (
    ("data", DataIdentity),
    ("summary", SummaryIdentity),
    ("externalPurchaseToken", ExternalPurchaseTokenIdentity),
)


def _as_id(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def select_notification_identity(claims: dict) -> Optional[NotificationIdentity]:
    for field, identity_cls in IDENTITY_SOURCES:
        sub = claims.get(field)
        if isinstance(sub, dict):
            return identity_cls.from_claims(sub)
    return None


def check_identity(configured_bundle_id: str,
                   configured_app_apple_id: Optional[str],
                   configured_environment: str,
                   claimed_bundle_id: Optional[str],
                   claimed_app_apple_id: Any,
                   claimed_environment: Optional[str]) -> None:
    """Compare claimed identity with the configured one.

    The application id is only compared for Production claims. Identity is
    checked before environment, so an identity mismatch always wins.
    """
    if claimed_bundle_id != configured_bundle_id or (
        claimed_environment == Environment.PRODUCTION.value
        and _as_id(claimed_app_apple_id) != _as_id(configured_app_apple_id)
    ):
        raise VerificationException.invalid_app_identifier()
    if claimed_environment != configured_environment:
        raise VerificationException.invalid_environment()


def check_app_transaction_identity(configured_bundle_id: str,
                                   configured_app_apple_id: Optional[str],
                                   configured_environment: str,
                                   claims: dict) -> None:
    # unlike notifications, the configured environment selects the strict app id check
    if configured_bundle_id != claims.get("bundleId") or (
        configured_environment == Environment.PRODUCTION.value
        and _as_id(configured_app_apple_id) != _as_id(claims.get("appAppleId"))
    ):
        raise VerificationException.invalid_app_identifier()
    if configured_environment != claims.get("receiptType"):
        raise VerificationException.invalid_environment()


def check_bundle_id(configured_bundle_id: str, claims: dict) -> None:
    if claims.get("bundleId") != configured_bundle_id:
        raise VerificationException.invalid_app_identifier()


def check_environment(configured_environment: str, claims: dict) -> None:
    if claims.get("environment") != configured_environment:
        raise VerificationException.invalid_environment()

"""
Signed data verifier.

Verifies JWS payloads (transactions, renewal info, server notifications,
app transactions) signed by a leaf certificate chaining to one of the
configured trusted roots, then checks the decoded claims against the
configured bundle id, app apple id and environment.

Instances hold only immutable configuration and may be shared freely
between threads.
"""

import logging
from typing import Any, Callable, Iterable, Optional, Union

from storeverify.claims import (
    check_app_transaction_identity,
    check_bundle_id,
    check_environment,
    check_identity,
    select_notification_identity,
)
from storeverify.common.errors import VerificationException
from storeverify.common.models import Environment, VerifierConfig
from storeverify.common.utils import now_ms, parse_date_ms
from storeverify.crypto.jws import decode_unverified, decode_verified
from storeverify.crypto.pki import load_certificate, load_x5c_certificate, verify_certificate_chain

logger = logging.getLogger(__name__)

CHAIN_LENGTH = 3

Claims = dict[str, Any]


def _date_claim_ms(claims: Claims, field: str) -> int:
    value = claims.get(field)
    if value is None:
        return now_ms()
    try:
        return parse_date_ms(value)
    except (ValueError, TypeError, OverflowError) as e:
        raise VerificationException.verification_failure(f"unreadable {field}") from e


def signed_date_ms(claims: Claims) -> int:
    # read from the payload before its signature has been checked
    return _date_claim_ms(claims, "signedDate")


def receipt_creation_date_ms(claims: Claims) -> int:
    return _date_claim_ms(claims, "receiptCreationDate")


class SignedDataVerifier:
    def __init__(self,
                 root_certificates: Iterable[Union[bytes, str, Any]],
                 environment: Union[Environment, str],
                 bundle_id: str,
                 app_apple_id: Optional[Union[str, int]] = None):
        """
        Args:
            root_certificates: trusted roots as PEM/DER bytes or parsed certificates.
            environment: one of Sandbox, Production, Xcode, LocalTesting.
            bundle_id: expected bundle identifier.
            app_apple_id: expected app apple id; required for Production.

        Raises:
            ValueError: unreadable root certificate, unknown environment, or
                Production without an app apple id.
        """
        self._config = VerifierConfig(
            root_certificates=tuple(load_certificate(c) for c in root_certificates),
            environment=environment,
            bundle_id=bundle_id,
            app_apple_id=app_apple_id,
        )
        if not self._config.root_certificates:
            logger.warning("verifier configured without trusted roots; every payload will be rejected")

    @property
    def config(self) -> VerifierConfig:
        return self._config

    @property
    def root_certificates(self):
        return self._config.root_certificates

    @property
    def environment(self) -> str:
        return self._config.environment.value

    @property
    def bundle_id(self) -> str:
        return self._config.bundle_id

    @property
    def app_apple_id(self) -> Optional[str]:
        return self._config.app_apple_id

    def verify_and_decode_transaction(self, signed_transaction_info: str) -> Claims:
        claims = self._verify_jws(signed_transaction_info)
        check_bundle_id(self.bundle_id, claims)
        check_environment(self.environment, claims)
        return claims

    def verify_and_decode_renewal_info(self, signed_renewal_info: str) -> Claims:
        # renewal info carries no bundle id
        claims = self._verify_jws(signed_renewal_info)
        check_environment(self.environment, claims)
        return claims

    def verify_and_decode_notification(self, signed_payload: str) -> Claims:
        """Verify a server notification and return the whole decoded payload.

        Identity is read from the first of `data`, `summary` or
        `externalPurchaseToken` present in the payload.
        """
        claims = self._verify_jws(signed_payload)
        identity = select_notification_identity(claims)
        if identity is None:
            raise VerificationException.invalid_app_identifier()
        check_identity(
            self.bundle_id, self.app_apple_id, self.environment,
            identity.bundle_id, identity.app_apple_id, identity.effective_environment,
        )
        return claims

    def verify_and_decode_app_transaction(self, signed_app_transaction: str) -> Claims:
        claims = self._verify_jws(signed_app_transaction, effective_date=receipt_creation_date_ms)
        check_app_transaction_identity(self.bundle_id, self.app_apple_id, self.environment, claims)
        return claims

    def _verify_jws(self, token: str,
                    effective_date: Callable[[Claims], int] = signed_date_ms) -> Claims:
        unverified = decode_unverified(token)
        chain = unverified.header.get("x5c") or []
        if not isinstance(chain, list) or len(chain) != CHAIN_LENGTH:
            raise VerificationException.verification_failure("x5c must carry exactly 3 certificates")

        leaf = load_x5c_certificate(chain[0])
        intermediate = load_x5c_certificate(chain[1])
        effective_ms = effective_date(unverified.claims)
        logger.debug("verifying certificate chain at %d", effective_ms)
        public_key = verify_certificate_chain(self._config.root_certificates, leaf, intermediate, effective_ms)
        return decode_verified(token, public_key)

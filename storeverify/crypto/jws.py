"""
JWS decode boundary.

Thin wrapper over PyJWT. Callers only ever see VerificationException,
never PyJWT's own exception types.
"""

from dataclasses import dataclass
from typing import Any

import jwt
from jwt.exceptions import PyJWTError

from storeverify.common.errors import VerificationException

SIGNING_ALGORITHM = "ES256"

# the signature is the only thing checked here; claim policy lives elsewhere
_SIGNATURE_ONLY = {
    "verify_signature": True,
    "verify_exp": False,
    "verify_nbf": False,
    "verify_iat": False,
    "verify_aud": False,
    "verify_iss": False,
    "verify_sub": False,
    "verify_jti": False,
    "require": [],
}


@dataclass(frozen=True)
class UnverifiedJWS:
    header: dict[str, Any]
    claims: dict[str, Any]


def decode_unverified(token: str) -> UnverifiedJWS:
    try:
        header = jwt.get_unverified_header(token)
        claims = jwt.decode(token, options={"verify_signature": False})
    except (PyJWTError, ValueError, TypeError) as e:
        raise VerificationException.verification_failure("malformed JWS") from e
    return UnverifiedJWS(header=header, claims=claims)


def decode_verified(token: str, public_key) -> dict[str, Any]:
    try:
        return jwt.decode(token, public_key, algorithms=[SIGNING_ALGORITHM], options=_SIGNATURE_ONLY)
    except (PyJWTError, ValueError, TypeError) as e:
        raise VerificationException.verification_failure("JWS signature not verified") from e

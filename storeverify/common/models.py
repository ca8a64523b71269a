from enum import Enum
from typing import Literal, Optional, Tuple

from cryptography import x509
from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class Environment(str, Enum):
    SANDBOX = "Sandbox"
    PRODUCTION = "Production"
    XCODE = "Xcode"
    LOCAL_TESTING = "LocalTesting"


ENVIRONMENTS = {
    "sandbox": Environment.SANDBOX.value,
    "production": Environment.PRODUCTION.value,
    "xcode": Environment.XCODE.value,
    "local_testing": Environment.LOCAL_TESTING.value,
}


def _as_text(value):
    # numeric ids (appAppleId) compare equal to their string form
    if value is None or isinstance(value, str):
        return value
    return str(value)


class VerifierConfig(BaseModel):
    """Immutable verifier configuration, fixed at construction."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    root_certificates: Tuple[x509.Certificate, ...]
    environment: Environment
    bundle_id: str
    app_apple_id: Optional[str] = None

    @field_validator("app_apple_id", mode="before")
    @classmethod
    def _app_apple_id_as_text(cls, v):
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @model_validator(mode="after")
    def _production_needs_app_apple_id(self) -> "VerifierConfig":
        if self.environment is Environment.PRODUCTION and not self.app_apple_id:
            raise ValueError("app_apple_id is required when the environment is Production")
        return self


class NotificationIdentity(BaseModel):
    """Identity fields lifted from one notification sub-object.

    `source` names the sub-object (data / summary / externalPurchaseToken)
    the fields were read from.
    """

    model_config = ConfigDict(frozen=True)

    source: str
    bundle_id: Optional[str] = None
    app_apple_id: Optional[str] = None
    environment: Optional[str] = None
    external_purchase_id: Optional[str] = None

    @field_validator("bundle_id", "app_apple_id", "environment", mode="before")
    @classmethod
    def _text(cls, v):
        return _as_text(v)

    @field_validator("external_purchase_id", mode="before")
    @classmethod
    def _purchase_id(cls, v):
        # only a JSON false or null leaves the claimed environment in charge;
        # an empty string still counts as present
        if v is False:
            return None
        return _as_text(v)

    @classmethod
    def from_claims(cls, claims: dict) -> "NotificationIdentity":
        return cls(
            bundle_id=claims.get("bundleId"),
            app_apple_id=claims.get("appAppleId"),
            environment=claims.get("environment"),
            external_purchase_id=claims.get("externalPurchaseId"),
        )

    @property
    def effective_environment(self) -> Optional[str]:
        # an external purchase id decides the environment on its own
        if self.external_purchase_id is None:
            return self.environment
        if self.external_purchase_id.startswith("SANDBOX"):
            return Environment.SANDBOX.value
        return Environment.PRODUCTION.value


class DataIdentity(NotificationIdentity):
    source: Literal["data"] = "data"


class SummaryIdentity(NotificationIdentity):
    source: Literal["summary"] = "summary"


class ExternalPurchaseTokenIdentity(NotificationIdentity):
    source: Literal["externalPurchaseToken"] = "externalPurchaseToken"

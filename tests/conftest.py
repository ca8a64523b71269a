import datetime
from typing import Optional, Sequence

import jwt
import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from storeverify.common.utils import b64e, datetime_to_ms
from storeverify.crypto.pki import INTERMEDIATE_MARKER_OID, LEAF_MARKER_OID
from storeverify.verifier import SignedDataVerifier

BUNDLE_ID = "com.example.app"
APP_APPLE_ID = "1234"
# DER NULL, as carried by the issuer's marker extensions
MARKER_VALUE = b"\x05\x00"
DAY = datetime.timedelta(days=1)


def utc_now() -> datetime.datetime:
    # certificate times have second precision
    return datetime.datetime.now(datetime.timezone.utc).replace(microsecond=0)


def make_name(cn: str) -> x509.Name:
    return x509.Name([
        x509.NameAttribute(NameOID.COUNTRY_NAME, u"US"),
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, u"Storeverify Test"),
        x509.NameAttribute(NameOID.COMMON_NAME, cn),
    ])


def make_cert(subject: x509.Name, public_key, issuer: x509.Name, issuer_key,
              not_before: datetime.datetime, not_after: datetime.datetime,
              ca: Optional[bool] = False, marker_oids: Sequence[x509.ObjectIdentifier] = (),
              hash_alg=hashes.SHA256()) -> x509.Certificate:
    builder = (x509.CertificateBuilder()
               .subject_name(subject)
               .issuer_name(issuer)
               .public_key(public_key)
               .serial_number(x509.random_serial_number())
               .not_valid_before(not_before)
               .not_valid_after(not_after))
    if ca is not None:
        builder = builder.add_extension(x509.BasicConstraints(ca=ca, path_length=None), critical=True)
    for oid in marker_oids:
        builder = builder.add_extension(x509.UnrecognizedExtension(oid, MARKER_VALUE), critical=False)
    return builder.sign(issuer_key, hash_alg)


def der_b64(cert: x509.Certificate) -> str:
    return b64e(cert.public_bytes(serialization.Encoding.DER))


def pem(cert: x509.Certificate) -> bytes:
    return cert.public_bytes(serialization.Encoding.PEM)


def cert_ms(dt: datetime.datetime) -> int:
    return datetime_to_ms(dt)


class SigningChain:
    """A root / intermediate / leaf chain plus the leaf signing key."""

    def __init__(self, root, root_key, intermediate, intermediate_key, leaf, leaf_key):
        self.root = root
        self.root_key = root_key
        self.intermediate = intermediate
        self.intermediate_key = intermediate_key
        self.leaf = leaf
        self.leaf_key = leaf_key

    def x5c(self):
        return [der_b64(self.leaf), der_b64(self.intermediate), der_b64(self.root)]

    def sign(self, claims: dict, x5c=None, key=None) -> str:
        headers = {"x5c": self.x5c() if x5c is None else x5c}
        return jwt.encode(claims, key or self.leaf_key, algorithm="ES256", headers=headers)


def build_chain(now: Optional[datetime.datetime] = None,
                root_validity=(3650 * DAY, 3650 * DAY),
                intermediate_validity=(1825 * DAY, 1825 * DAY),
                leaf_validity=(DAY, DAY),
                intermediate_ca: Optional[bool] = True,
                intermediate_oids=(INTERMEDIATE_MARKER_OID,),
                leaf_oids=(LEAF_MARKER_OID,),
                leaf_issuer_key=None) -> SigningChain:
    now = now or utc_now()
    root_key = ec.generate_private_key(ec.SECP384R1())
    root_name = make_name("Storeverify Test Root CA")
    root = make_cert(root_name, root_key.public_key(), root_name, root_key,
                     now - root_validity[0], now + root_validity[1], ca=True,
                     hash_alg=hashes.SHA384())

    intermediate_key = ec.generate_private_key(ec.SECP256R1())
    intermediate_name = make_name("Storeverify Test Intermediate CA")
    intermediate = make_cert(intermediate_name, intermediate_key.public_key(), root_name, root_key,
                             now - intermediate_validity[0], now + intermediate_validity[1],
                             ca=intermediate_ca, marker_oids=intermediate_oids,
                             hash_alg=hashes.SHA384())

    leaf_key = ec.generate_private_key(ec.SECP256R1())
    leaf = make_cert(make_name("Storeverify Test Signing"), leaf_key.public_key(), intermediate_name,
                     leaf_issuer_key or intermediate_key,
                     now - leaf_validity[0], now + leaf_validity[1], marker_oids=leaf_oids)
    return SigningChain(root, root_key, intermediate, intermediate_key, leaf, leaf_key)


@pytest.fixture(scope="session")
def chain() -> SigningChain:
    return build_chain()


@pytest.fixture
def sandbox_verifier(chain) -> SignedDataVerifier:
    return SignedDataVerifier([pem(chain.root)], "Sandbox", BUNDLE_ID, APP_APPLE_ID)


@pytest.fixture
def production_verifier(chain) -> SignedDataVerifier:
    return SignedDataVerifier([pem(chain.root)], "Production", BUNDLE_ID, APP_APPLE_ID)

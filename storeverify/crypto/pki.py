import logging
from typing import Iterable, Optional, Sequence, Union

from cryptography import x509
from cryptography.hazmat.primitives import serialization

from storeverify.common.errors import VerificationException
from storeverify.common.utils import b64d, datetime_to_ms, sha256_hex
from storeverify.crypto.sign import SignatureCheck, check_certificate_signature, is_signed_by

logger = logging.getLogger(__name__)

# tolerated signer/verifier clock disagreement, in milliseconds
MAX_SKEW_MS = 60_000

LEAF_MARKER_OID = x509.ObjectIdentifier("1.2.840.113635.100.6.11.1")
INTERMEDIATE_MARKER_OID = x509.ObjectIdentifier("1.2.840.113635.100.6.2.1")


def load_certificate(data: Union[bytes, str, x509.Certificate]) -> x509.Certificate:
    """Parse a caller-supplied root certificate given as PEM or DER."""
    if isinstance(data, x509.Certificate):
        return data
    if isinstance(data, str):
        data = data.encode()
    if b"-----BEGIN CERTIFICATE-----" in data:
        return x509.load_pem_x509_certificate(data)
    return x509.load_der_x509_certificate(data)


def load_x5c_certificate(encoded: str) -> x509.Certificate:
    try:
        return x509.load_der_x509_certificate(b64d(encoded))
    except (ValueError, TypeError, AttributeError) as e:
        raise VerificationException.verification_failure("unreadable x5c certificate") from e


def fingerprint(cert: x509.Certificate) -> str:
    return sha256_hex(cert.public_bytes(serialization.Encoding.DER))


def is_issued_by(cert: x509.Certificate, issuer: x509.Certificate) -> bool:
    return cert.issuer == issuer.subject


def is_ca(cert: x509.Certificate) -> bool:
    try:
        ext = cert.extensions.get_extension_for_class(x509.BasicConstraints)
    except (x509.ExtensionNotFound, x509.DuplicateExtension, ValueError):
        return False
    return ext.value.ca


def has_extension(cert: x509.Certificate, oid: x509.ObjectIdentifier) -> bool:
    try:
        cert.extensions.get_extension_for_oid(oid)
    except (x509.ExtensionNotFound, x509.DuplicateExtension, ValueError):
        return False
    return True


def is_time_valid(cert: x509.Certificate, effective_ms: int) -> bool:
    not_before = datetime_to_ms(cert.not_valid_before_utc)
    not_after = datetime_to_ms(cert.not_valid_after_utc)
    return not (not_before > effective_ms + MAX_SKEW_MS or not_after < effective_ms - MAX_SKEW_MS)


def find_trusted_root(trusted_roots: Iterable[x509.Certificate],
                      intermediate: x509.Certificate) -> Optional[x509.Certificate]:
    for root in trusted_roots:
        check = check_certificate_signature(intermediate, root)
        if check is SignatureCheck.MALFORMED:
            logger.debug("skipping trusted root %s: unusable for signature checks", fingerprint(root))
            continue
        if check is SignatureCheck.VERIFIED and is_issued_by(intermediate, root):
            return root
    return None


def verify_certificate_chain(trusted_roots: Sequence[x509.Certificate],
                             leaf: x509.Certificate,
                             intermediate: x509.Certificate,
                             effective_ms: int):
    """Check leaf -> intermediate -> trusted root and return the leaf public key.

    Raises VerificationException (verification_failure) when the chain of
    trust does not hold, or (invalid_certificate) when any of the three
    certificates is outside its validity window at `effective_ms`.
    """
    root = find_trusted_root(trusted_roots, intermediate)
    valid = (
        root is not None
        and is_signed_by(leaf, intermediate)
        and is_issued_by(leaf, intermediate)
        and is_ca(intermediate)
        and has_extension(leaf, LEAF_MARKER_OID)
        and has_extension(intermediate, INTERMEDIATE_MARKER_OID)
    )
    if not valid:
        raise VerificationException.verification_failure("certificate chain not trusted")
    root_fp = fingerprint(root)
    logger.debug("chain anchored at trusted root %s", root_fp, extra={"root": root_fp})

    for name, cert in (("leaf", leaf), ("intermediate", intermediate), ("root", root)):
        if not is_time_valid(cert, effective_ms):
            raise VerificationException.invalid_certificate(f"{name} certificate not valid at {effective_ms}")

    return leaf.public_key()

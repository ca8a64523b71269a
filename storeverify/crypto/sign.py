from enum import Enum

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import ec, padding as asymp, rsa
from cryptography import x509


class SignatureCheck(Enum):
    VERIFIED = "verified"
    NOT_VERIFIED = "not_verified"
    # issuer key or signature algorithm unusable; callers may skip the issuer
    MALFORMED = "malformed"


def check_certificate_signature(cert: x509.Certificate, issuer: x509.Certificate) -> SignatureCheck:
    try:
        pub_key = issuer.public_key()
        hash_alg = cert.signature_hash_algorithm
        if hash_alg is None:
            return SignatureCheck.MALFORMED
        if isinstance(pub_key, ec.EllipticCurvePublicKey):
            pub_key.verify(cert.signature, cert.tbs_certificate_bytes, ec.ECDSA(hash_alg))
        elif isinstance(pub_key, rsa.RSAPublicKey):
            pub_key.verify(cert.signature, cert.tbs_certificate_bytes, asymp.PKCS1v15(), hash_alg)
        else:
            return SignatureCheck.MALFORMED
    except InvalidSignature:
        return SignatureCheck.NOT_VERIFIED
    except (ValueError, TypeError, UnsupportedAlgorithm):
        return SignatureCheck.MALFORMED
    return SignatureCheck.VERIFIED


def is_signed_by(cert: x509.Certificate, issuer: x509.Certificate) -> bool:
    return check_certificate_signature(cert, issuer) is SignatureCheck.VERIFIED

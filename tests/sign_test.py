from cryptography.hazmat.primitives.asymmetric import ed25519, rsa

from conftest import DAY, build_chain, make_cert, make_name, utc_now
from storeverify.crypto.sign import SignatureCheck, check_certificate_signature, is_signed_by


def test_verified(chain):
    assert check_certificate_signature(chain.intermediate, chain.root) is SignatureCheck.VERIFIED
    assert check_certificate_signature(chain.leaf, chain.intermediate) is SignatureCheck.VERIFIED
    assert is_signed_by(chain.leaf, chain.intermediate)


def test_not_verified(chain):
    other = build_chain()
    assert check_certificate_signature(chain.intermediate, other.root) is SignatureCheck.NOT_VERIFIED
    assert check_certificate_signature(chain.leaf, chain.root) is SignatureCheck.NOT_VERIFIED
    assert not is_signed_by(chain.intermediate, other.root)


def test_rsa_issuer():
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = make_name("RSA Root")
    now = utc_now()
    root = make_cert(name, key.public_key(), name, key, now - DAY, now + DAY, ca=True)
    assert check_certificate_signature(root, root) is SignatureCheck.VERIFIED


def test_malformed_issuer_key(chain):
    key = ed25519.Ed25519PrivateKey.generate()
    name = make_name("Ed25519 Root")
    now = utc_now()
    root = make_cert(name, key.public_key(), name, key, now - DAY, now + DAY, ca=True, hash_alg=None)
    assert check_certificate_signature(chain.intermediate, root) is SignatureCheck.MALFORMED
    assert not is_signed_by(chain.intermediate, root)



def test_unhashed_signature_against_ec_issuer(chain):
    key = ed25519.Ed25519PrivateKey.generate()
    now = utc_now()
    cert = make_cert(make_name("Ed25519 Signed"), key.public_key(), chain.root.subject, key,
                     now - DAY, now + DAY, hash_alg=None)
    assert check_certificate_signature(cert, chain.root) is SignatureCheck.MALFORMED

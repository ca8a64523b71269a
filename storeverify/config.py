import os
from typing import Optional

from dotenv import load_dotenv

from storeverify.common.models import Environment
from storeverify.verifier import SignedDataVerifier

ROOT_CERTS_VAR = "STOREVERIFY_ROOT_CERTS"
ENVIRONMENT_VAR = "STOREVERIFY_ENVIRONMENT"
BUNDLE_ID_VAR = "STOREVERIFY_BUNDLE_ID"
APP_APPLE_ID_VAR = "STOREVERIFY_APP_APPLE_ID"


def read_root_certificates(paths: str) -> list:
    roots = []
    for path in (p.strip() for p in paths.split(",")):
        if not path:
            continue
        with open(path, "rb") as f:
            roots.append(f.read())
    return roots


def load_verifier_from_env(env_file: Optional[str] = None) -> SignedDataVerifier:
    """Build a verifier from STOREVERIFY_* variables (and an optional .env file).

    Raises ValueError when the bundle id or the trusted roots are missing.
    """
    load_dotenv(env_file)
    bundle_id = os.getenv(BUNDLE_ID_VAR)
    if not bundle_id:
        raise ValueError(f"{BUNDLE_ID_VAR} is not set")
    roots = read_root_certificates(os.getenv(ROOT_CERTS_VAR, ""))
    if not roots:
        raise ValueError(f"{ROOT_CERTS_VAR} names no root certificates")
    return SignedDataVerifier(
        roots,
        os.getenv(ENVIRONMENT_VAR, Environment.PRODUCTION.value),
        bundle_id,
        os.getenv(APP_APPLE_ID_VAR) or None,
    )

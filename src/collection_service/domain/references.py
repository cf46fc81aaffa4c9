"""Opaque references and merchant credentials."""

import hashlib
import hmac
import secrets


REFERENCE_BYTES = 24

TRANSACTION_PREFIX = "tx"
PAYOUT_PREFIX = "px"
PUBLIC_KEY_PREFIX = "sqpk"
SECRET_KEY_PREFIX = "sqsk"


def generate_reference(prefix: str) -> str:
    """Return `<prefix>_` followed by 192 random bits, hex encoded."""
    return f"{prefix}_{secrets.token_hex(REFERENCE_BYTES)}"


def hash_secret(secret: str) -> str:
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def verify_secret(secret: str, secret_hash: str) -> bool:
    return hmac.compare_digest(hash_secret(secret), secret_hash)


def generate_account_number(length: int = 10) -> str:
    return "".join(secrets.choice("0123456789") for _ in range(length))

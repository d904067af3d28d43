"""
OTP code generation and salted hashing.

Codes are drawn from ``secrets`` and stored only as a scrypt digest. The
plaintext never outlives the send request.
"""
import hashlib
import hmac
import secrets

DEFAULT_CODE_LENGTH = 4
DEFAULT_HASH_COST = 16384

# scrypt block size / parallelism / output length
_SCRYPT_R = 8
_SCRYPT_P = 1
_DIGEST_BYTES = 64


def generate_code(length: int = DEFAULT_CODE_LENGTH) -> str:
    """Generate a zero-padded numeric code of ``length`` digits"""
    return str(secrets.randbelow(10**length)).zfill(length)


def generate_salt() -> str:
    """Fresh random salt, one per challenge"""
    return secrets.token_hex(16)


def digest(code: str, salt: str, cost: int = DEFAULT_HASH_COST) -> str:
    """
    Memory-hard one-way digest of ``code``.

    Args:
        code: Plaintext code
        salt: Per-challenge salt from ``generate_salt``
        cost: scrypt N parameter (power of two)

    Returns:
        Hex-encoded digest
    """
    derived = hashlib.scrypt(
        code.encode("utf-8"),
        salt=salt.encode("utf-8"),
        n=cost,
        r=_SCRYPT_R,
        p=_SCRYPT_P,
        maxmem=256 * _SCRYPT_R * (cost + _SCRYPT_P + 2),
        dklen=_DIGEST_BYTES,
    )
    return derived.hex()


def codes_match(candidate: str, salt: str, stored_digest: str, cost: int = DEFAULT_HASH_COST) -> bool:
    """
    Recompute the digest of ``candidate`` and compare it to ``stored_digest``.

    Unequal lengths are an immediate mismatch; equal lengths are compared in
    constant time.
    """
    try:
        incoming = bytes.fromhex(digest(candidate, salt, cost))
        stored = bytes.fromhex(stored_digest)
    except ValueError:
        return False
    if len(incoming) != len(stored):
        return False
    return hmac.compare_digest(incoming, stored)

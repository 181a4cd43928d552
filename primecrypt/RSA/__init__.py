import logging
from typing import NamedTuple

from primecrypt import config
from primecrypt.error import InvalidArgument, InternalInconsistency, GenerationExhausted
from primecrypt.number_theory_stuff import multiply, divide, mulinv, xgcd, require_int
from primecrypt.primes import random_prime

__all__ = ['RSAKey', 'find_public_exponent', 'generate_keys', 'encrypt', 'decrypt', 'crt_decrypt']

logger = logging.getLogger(__name__)


class RSAKey(NamedTuple):
    N: int
    e: int
    d: int
    p: int
    q: int

    @property
    def public(self):
        return self.e, self.N

    @property
    def private(self):
        return self.d, self.N


def find_public_exponent(phi: int):
    """Smallest odd e >= 3 coprime to phi, None if e reaches phi first"""
    e = 3
    while e < phi:
        if xgcd(e, phi).gcd == 1:
            return e
        e += 2
    return None


def generate_keys(bits: int, certainty: int = 40, rng=None, max_attempts=None) -> RSAKey:
    if isinstance(bits, bool) or not isinstance(bits, int) or bits < 8 or bits % 2:
        raise InvalidArgument(f"Bit length must be even and at least 8, not {bits!r}")
    if isinstance(certainty, bool) or not isinstance(certainty, int) or certainty < 1:
        raise InvalidArgument(f"Certainty must be a positive integer, not {certainty!r}")
    cap = config.max_attempts(max_attempts)
    if rng is None:
        rng = config.default_rng()

    for attempt in range(1, cap + 1):
        p = random_prime(bits // 2, certainty, rng, cap)
        q = random_prime(bits // 2, certainty, rng, cap)
        if p == q:
            continue

        N = multiply(p, q)
        phi = multiply(p - 1, q - 1)

        e = find_public_exponent(phi)
        if e is None:
            logger.warning("No public exponent below phi(N), restarting %d-bit key generation", bits)
            continue

        d = mulinv(e, phi)
        if divide(multiply(e, d), phi).remainder != 1:
            raise InternalInconsistency(f"e * d is not 1 modulo phi(N) for e={e}")

        logger.debug("Generated %d-bit RSA key with e=%d after %d attempts", bits, e, attempt)
        return RSAKey(N, e, d, p, q)

    raise GenerationExhausted(f"Could not generate a {bits}-bit RSA key in {cap} attempts", attempts=cap)


def _check_range(name, value, N):
    require_int(name, value)
    if value < 0:
        raise InvalidArgument(f"{name} must be non-negative")
    if value >= N:
        raise InvalidArgument(f"{name} must be smaller than the modulus")


def _check_exponent(name, value):
    require_int(name, value)
    if value < 1:
        raise InvalidArgument(f"{name} must be positive")


def _check_modulus(name, value):
    require_int(name, value)
    if value < 2:
        raise InvalidArgument(f"{name} must be at least 2")


def encrypt(message: int, e: int, N: int) -> int:
    _check_exponent('Public exponent', e)
    _check_modulus('Modulus', N)
    _check_range('Message', message, N)
    return pow(message, e, N)


def decrypt(ciphertext: int, d: int, N: int) -> int:
    _check_exponent('Private exponent', d)
    _check_modulus('Modulus', N)
    _check_range('Ciphertext', ciphertext, N)
    return pow(ciphertext, d, N)


def crt_decrypt(ciphertext: int, d: int, p: int, q: int) -> int:
    """
    Decryption via the Chinese Remainder Theorem: two half size exponentiations
    mod p and mod q recombined with Garner's formula, about four times faster
    than a single exponentiation mod N.
    """
    _check_exponent('Private exponent', d)
    _check_modulus('p', p)
    _check_modulus('q', q)
    N = multiply(p, q)
    _check_range('Ciphertext', ciphertext, N)

    dp = divide(d, p - 1).remainder
    dq = divide(d, q - 1).remainder

    m1 = pow(ciphertext, dp, p)
    m2 = pow(ciphertext, dq, q)

    q_inv = mulinv(q, p)
    h = multiply(m1 - m2, q_inv) % p

    return (m2 + multiply(h, q)) % N

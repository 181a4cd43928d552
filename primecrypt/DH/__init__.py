import logging
from typing import NamedTuple

from primecrypt import config
from primecrypt.error import InvalidArgument, GenerationExhausted
from primecrypt.number_theory_stuff import random_between, require_int
from primecrypt.primes import random_safe_prime

__all__ = ['DHParameters', 'generate_parameters', 'find_generator', 'generate_private_key',
           'compute_public_key', 'compute_shared_key']

logger = logging.getLogger(__name__)


class DHParameters(NamedTuple):
    q: int
    p: int
    g: int


def _check_modulus(p):
    if isinstance(p, bool) or not isinstance(p, int) or p < 5:
        raise InvalidArgument(f"Modulus must be an integer of at least 5, not {p!r}")


def find_generator(q: int, p: int, max_attempts=None) -> int:
    """
    Smallest g >= 2 with g^2 != 1 and g^q != 1 (mod p).

    For p = 2q + 1 the group order is 2q, so the only element orders are 1, 2, q and 2q
    and these two checks leave the elements of order 2q.
    """
    _check_modulus(p)
    if isinstance(q, bool) or not isinstance(q, int) or q < 2:
        raise InvalidArgument(f"Subgroup order must be an integer of at least 2, not {q!r}")
    cap = config.max_attempts(max_attempts)

    g = 2
    for _ in range(cap):
        if g >= p:
            break
        if pow(g, 2, p) != 1 and pow(g, q, p) != 1:
            return g
        g += 1

    raise GenerationExhausted(f"No generator found for p={p}, q={q} after {g - 2} candidates", attempts=g - 2)


def generate_parameters(bits: int, runs: int = 40, rng=None, max_attempts=None) -> DHParameters:
    q, p = random_safe_prime(bits, runs, rng, max_attempts)
    g = find_generator(q, p, max_attempts)
    logger.debug("Generated %d-bit group with generator %d", bits, g)
    return DHParameters(q, p, g)


def generate_private_key(q: int, rng=None) -> int:
    """Uniform in [1, q - 2]"""
    if isinstance(q, bool) or not isinstance(q, int) or q < 3:
        raise InvalidArgument(f"Subgroup order must be an integer of at least 3, not {q!r}")
    return random_between(1, q - 1, rng)


def compute_public_key(g: int, private_key: int, p: int) -> int:
    require_int('Generator', g)
    require_int('Private key', private_key)
    _check_modulus(p)
    if private_key < 1:
        raise InvalidArgument('Private key must be positive')
    return pow(g, private_key, p)


def compute_shared_key(public_key: int, private_key: int, p: int) -> int:
    require_int('Public key', public_key)
    require_int('Private key', private_key)
    _check_modulus(p)
    if private_key < 1:
        raise InvalidArgument('Private key must be positive')
    if not 1 < public_key < p:
        raise InvalidArgument('Public key must lie in [2, p - 1]')
    return pow(public_key, private_key, p)

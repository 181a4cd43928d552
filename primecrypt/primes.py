import logging
from typing import NamedTuple

from primecrypt import config
from primecrypt.error import InvalidArgument, GenerationExhausted
from primecrypt.number_theory_stuff import divide, random_between

__all__ = ['MillerRabinParameters', 'decompose', 'witness_round', 'miller_rabin', 'is_probable_prime',
           'random_prime', 'sample_prime', 'random_safe_prime']

logger = logging.getLogger(__name__)


class MillerRabinParameters(NamedTuple):
    """n - 1 = u * 2**r with u odd"""
    r: int
    u: int


def decompose(n: int) -> MillerRabinParameters:
    u, r = n - 1, 0
    while u and not u & 1:
        u = divide(u, 2).quotient
        r += 1
    return MillerRabinParameters(r, u)


def witness_round(a: int, r: int, u: int, n: int) -> bool:
    """
    One Miller-Rabin round with base a. Returns False only if a proves n composite.
    n must be odd and at least 5.
    """
    x = pow(a, u, n)
    if x == 1 or x == n - 1:
        return True

    for _ in range(r - 1):
        x = pow(x, 2, n)
        if x == n - 1:
            return True
    return False


def _check_runs(runs):
    if isinstance(runs, bool) or not isinstance(runs, int) or runs < 1:
        raise InvalidArgument(f"Number of rounds must be a positive integer, not {runs!r}")


def miller_rabin(n: int, runs: int = 40, rng=None) -> bool:
    # A composite survives a round with probability at most 1/4, so 40 runs
    # leave a false positive rate below 2**-80
    _check_runs(runs)
    if isinstance(n, bool) or not isinstance(n, int):
        raise InvalidArgument(f"Candidate must be an integer, not {type(n).__name__}")

    if n in (2, 3):
        return True
    if n < 2 or not n & 1:
        return False

    if rng is None:
        rng = config.default_rng()

    r, u = decompose(n)
    for _ in range(runs):
        a = random_between(2, n - 1, rng)
        if not witness_round(a, r, u, n):
            return False
    return True


is_probable_prime = miller_rabin


def _check_bits(bits, minimum):
    if isinstance(bits, bool) or not isinstance(bits, int) or bits < minimum:
        raise InvalidArgument(f"Bit length must be an integer of at least {minimum}, not {bits!r}")


def random_prime(bits: int, runs: int = 40, rng=None, max_attempts=None) -> int:
    """Probable prime of exactly `bits` bits, by rejection sampling odd candidates"""
    _check_bits(bits, 2)
    _check_runs(runs)
    cap = config.max_attempts(max_attempts)
    if rng is None:
        rng = config.default_rng()

    top = 1 << (bits - 1)
    for attempt in range(1, cap + 1):
        candidate = rng.getrandbits(bits) | top | 1
        if miller_rabin(candidate, runs, rng):
            logger.debug("Found %d-bit probable prime after %d candidates", bits, attempt)
            return candidate

    raise GenerationExhausted(f"No {bits}-bit prime found in {cap} candidates", attempts=cap)


sample_prime = random_prime


def random_safe_prime(bits: int, runs: int = 40, rng=None, max_attempts=None):
    """
    Returns (q, p) with p = 2q + 1 both probable primes and p exactly `bits` bits long.
    """
    _check_bits(bits, 3)
    _check_runs(runs)
    cap = config.max_attempts(max_attempts)
    if rng is None:
        rng = config.default_rng()

    for attempt in range(1, cap + 1):
        q = random_prime(bits - 1, runs, rng, max_attempts=cap)
        p = 2 * q + 1
        if miller_rabin(p, runs, rng):
            logger.debug("Found %d-bit safe prime after %d Sophie Germain candidates", bits, attempt)
            return q, p

    raise GenerationExhausted(f"No {bits}-bit safe prime found in {cap} attempts", attempts=cap)

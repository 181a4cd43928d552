import sys
import threading
from contextlib import contextmanager
from typing import NamedTuple

from primecrypt import config
from primecrypt.error import InvalidArgument, NoInverseExists

__all__ = ['DivisionResult', 'BezoutResult', 'multiply', 'divide', 'divide_bitwise', 'xgcd', 'mulinv',
           'random_between', 'random_below']

# Operands up to this size are multiplied natively
WORD_BITS = 64

LIMB_BITS = 32
LIMB_BASE = 1 << LIMB_BITS
LIMB_MASK = LIMB_BASE - 1

# Frames kept free for the caller on top of a Euclid run
RECURSION_MARGIN = 200


class DivisionResult(NamedTuple):
    quotient: int
    remainder: int


class BezoutResult(NamedTuple):
    gcd: int
    x: int
    y: int


def require_int(name, value):
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgument(f"{name} must be an integer, not {type(value).__name__}")


def multiply(x: int, y: int) -> int:
    """Karatsuba multiplication of two arbitrary precision integers of any sign"""
    require_int('x', x)
    require_int('y', y)
    return _multiply(x, y)


def _multiply(x, y):
    negative = (x < 0) ^ (y < 0)
    product = _karatsuba(abs(x), abs(y))
    return -product if negative else product


def _karatsuba(x, y):
    if x.bit_length() <= WORD_BITS and y.bit_length() <= WORD_BITS:
        return x * y

    n = max(x.bit_length(), y.bit_length())
    n = n // 2 + n % 2

    # x = a + b*2^n, y = c + d*2^n
    b = x >> n
    a = x - (b << n)
    d = y >> n
    c = y - (d << n)

    ac = _karatsuba(a, c)
    bd = _karatsuba(b, d)
    middle = _karatsuba(a + b, c + d) - ac - bd

    return ac + (middle << n) + (bd << (2 * n))


def _to_limbs(n):
    """Little endian base 2**32 digits of a non-negative integer"""
    limbs = []
    while n:
        limbs.append(n & LIMB_MASK)
        n >>= LIMB_BITS
    return limbs or [0]


def _from_limbs(limbs):
    n = 0
    for limb in reversed(limbs):
        n = (n << LIMB_BITS) | limb
    return n


def _short_division(dividend, divisor):
    u = _to_limbs(dividend)
    q = [0] * len(u)
    r = 0
    for j in reversed(range(len(u))):
        current = (r << LIMB_BITS) | u[j]
        q[j] = current // divisor
        r = current - q[j] * divisor
    return DivisionResult(_from_limbs(q), r)


def _long_division(dividend, divisor):
    """
    Knuth's Algorithm D (TAOCP vol. 2, 4.3.1) over 32-bit limbs.

    The divisor is normalised so its top limb has the high bit set, which keeps
    every trial quotient digit at most one too large after the two-limb correction.
    """
    shift = -divisor.bit_length() % LIMB_BITS
    u = _to_limbs(dividend << shift)
    u.append(0)
    v = _to_limbs(divisor << shift)

    n = len(v)
    m = len(u) - n - 1
    v_top, v_next = v[-1], v[-2]
    q = [0] * (m + 1)

    for j in range(m, -1, -1):
        qhat, rhat = divmod((u[j + n] << LIMB_BITS) | u[j + n - 1], v_top)
        while qhat >= LIMB_BASE or qhat * v_next > ((rhat << LIMB_BITS) | u[j + n - 2]):
            qhat -= 1
            rhat += v_top
            if rhat >= LIMB_BASE:
                break

        # u[j:j+n+1] -= qhat * v
        borrow = carry = 0
        for i in range(n):
            p = qhat * v[i] + carry
            carry = p >> LIMB_BITS
            t = u[i + j] - (p & LIMB_MASK) - borrow
            u[i + j] = t & LIMB_MASK
            borrow = 1 if t < 0 else 0
        t = u[j + n] - carry - borrow
        u[j + n] = t & LIMB_MASK

        if t < 0:
            # qhat was one too large, add the divisor back
            qhat -= 1
            carry = 0
            for i in range(n):
                t = u[i + j] + v[i] + carry
                u[i + j] = t & LIMB_MASK
                carry = t >> LIMB_BITS
            u[j + n] = (u[j + n] + carry) & LIMB_MASK

        q[j] = qhat

    return DivisionResult(_from_limbs(q), _from_limbs(u[:n]) >> shift)


def _divide(dividend, divisor):
    if dividend < divisor:
        return DivisionResult(0, dividend)
    if divisor < LIMB_BASE:
        return _short_division(dividend, divisor)
    return _long_division(dividend, divisor)


def _check_division(dividend, divisor):
    require_int('dividend', dividend)
    require_int('divisor', divisor)
    if dividend < 0:
        raise InvalidArgument('Dividend must be non-negative')
    if divisor <= 0:
        raise InvalidArgument('Divisor must be positive')


def divide(dividend: int, divisor: int) -> DivisionResult:
    """
    Returns the unique (quotient, remainder) such that
    dividend = quotient * divisor + remainder and 0 <= remainder < divisor
    """
    _check_division(dividend, divisor)
    return _divide(dividend, divisor)


def divide_bitwise(dividend: int, divisor: int) -> DivisionResult:
    """Binary long division, one dividend bit at a time from the most significant end"""
    _check_division(dividend, divisor)
    quotient = remainder = 0
    for i in reversed(range(dividend.bit_length())):
        quotient <<= 1
        remainder = (remainder << 1) | ((dividend >> i) & 1)
        if remainder >= divisor:
            remainder -= divisor
            quotient |= 1
    return DivisionResult(quotient, remainder)


def xgcd(a: int, b: int) -> BezoutResult:
    """
    Takes non-negative integers a, b as input, and return a triple (g, x, y), such that ax + by = g = gcd(a, b)

    Recursive, one stack frame per Euclidean step: about 0.6 frames per operand bit
    on average and 1.44 in the worst case. The interpreter recursion limit is raised
    to cover that for the duration of the call.
    """
    require_int('a', a)
    require_int('b', b)
    if a < 0 or b < 0:
        raise InvalidArgument('Extended GCD is defined here for non-negative integers only')
    with _recursion_headroom(max(a, b).bit_length()):
        return _xgcd(a, b)


_limit_lock = threading.Lock()
_limit_users = 0
_saved_limit = None


@contextmanager
def _recursion_headroom(bits):
    """
    Raise sys.setrecursionlimit by enough frames for a Euclid run on `bits`-bit operands.

    The limit is global, so concurrent callers only ever raise it and the original
    value comes back when the last of them leaves.
    """
    global _limit_users, _saved_limit
    needed = 2 * bits + RECURSION_MARGIN
    with _limit_lock:
        if _limit_users == 0:
            _saved_limit = sys.getrecursionlimit()
        _limit_users += 1
        if sys.getrecursionlimit() < _saved_limit + needed:
            sys.setrecursionlimit(_saved_limit + needed)
    try:
        yield
    finally:
        with _limit_lock:
            _limit_users -= 1
            if _limit_users == 0:
                sys.setrecursionlimit(_saved_limit)
                _saved_limit = None


def _xgcd(a, b):
    if b == 0:
        return BezoutResult(a, 1, 0)
    q, r = _divide(a, b)
    g, x, y = _xgcd(b, r)
    return BezoutResult(g, y, x - _multiply(q, y))


def mulinv(a: int, m: int) -> int:
    """An application of extended GCD algorithm to finding modular inverses"""
    require_int('a', a)
    require_int('m', m)
    if m <= 0:
        raise InvalidArgument('Modulus must be positive')
    with _recursion_headroom(m.bit_length()):
        g, x, _ = _xgcd(a % m, m)
    if g != 1:
        raise NoInverseExists(a, m)
    return x % m


def random_between(lower: int, upper: int, rng=None) -> int:
    """Uniform integer in [lower, upper), rejection sampled so there is no modulo bias"""
    require_int('lower', lower)
    require_int('upper', upper)
    if upper <= lower:
        raise InvalidArgument(f"Empty range [{lower}, {upper})")
    if rng is None:
        rng = config.default_rng()

    span = upper - lower
    bits = span.bit_length()
    value = rng.getrandbits(bits)
    while value >= span:
        value = rng.getrandbits(bits)
    return value + lower


def random_below(upper: int, rng=None) -> int:
    return random_between(0, upper, rng)

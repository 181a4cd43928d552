import os
import random
import secrets
from enum import Enum, unique

from primecrypt.error import InvalidArgument

__all__ = ['RNG', 'current_rng', 'default_rng', 'max_attempts']

DEFAULT_MAX_ATTEMPTS = 100000


@unique
class RNG(Enum):
    SYSTEM = 'system'
    PSEUDO = 'pseudo'


def current_rng():
    value = os.environ.get('PRIMECRYPT_RNG', 'system').lower()
    try:
        return RNG(value)
    except ValueError:
        raise InvalidArgument(f"PRIMECRYPT_RNG must be one of {[r.value for r in RNG]}, not {value!r}")


def default_rng():
    """Build the random source selected by the environment.

    A fresh source is returned on every call so no generator state is shared
    between callers. ``PRIMECRYPT_SEED`` only applies to the ``pseudo`` source.
    """
    if current_rng() is RNG.PSEUDO:
        seed = os.environ.get('PRIMECRYPT_SEED')
        return random.Random(seed)
    return secrets.SystemRandom()


def max_attempts(override=None):
    """Cap for every search loop, explicit override first, then the environment"""
    if override is not None:
        value = override
    else:
        raw = os.environ.get('PRIMECRYPT_MAX_ATTEMPTS', str(DEFAULT_MAX_ATTEMPTS))
        try:
            value = int(raw)
        except ValueError:
            raise InvalidArgument(f"PRIMECRYPT_MAX_ATTEMPTS must be an integer, not {raw!r}")
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise InvalidArgument(f"Attempt cap must be a positive integer, not {value!r}")
    return value

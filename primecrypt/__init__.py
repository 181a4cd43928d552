"""
Pure Python arbitrary-precision arithmetic, primality testing and public key primitives (RSA, Diffie-Hellman).
"""

import importlib
import pkgutil

from .error import *
from .config import *
from .number_theory_stuff import *
from .primes import *
from .RSA import *
from .DH import *

__all__ = []

for _, module_name, _ in pkgutil.walk_packages(__path__, prefix=__name__ + '.'):
    _module = importlib.import_module(module_name)
    module_exports = getattr(_module, '__all__', [])
    __all__.extend(module_exports)

__version__ = "0.1"

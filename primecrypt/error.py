__all__ = ['PrimecryptError', 'InvalidArgument', 'NoInverseExists', 'InternalInconsistency', 'GenerationExhausted']


class PrimecryptError(Exception):
    pass


class InvalidArgument(PrimecryptError, ValueError):
    pass


class NoInverseExists(PrimecryptError, ArithmeticError):
    def __init__(self, a, m):
        super().__init__(f"{a} has no inverse modulo {m}")
        self.a = a
        self.m = m


class InternalInconsistency(PrimecryptError, RuntimeError):
    pass


class GenerationExhausted(PrimecryptError, RuntimeError):
    def __init__(self, message, attempts=None):
        super().__init__(message)
        self.message = message
        self.attempts = attempts

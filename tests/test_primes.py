import random
import unittest
from concurrent.futures import ThreadPoolExecutor

from primecrypt.error import InvalidArgument, GenerationExhausted
from primecrypt.primes import decompose, witness_round, miller_rabin, is_probable_prime, random_prime, \
    sample_prime, random_safe_prime


def sieve(limit):
    is_prime = [True] * limit
    is_prime[0] = is_prime[1] = False
    for i in range(2, int(limit ** 0.5) + 1):
        if is_prime[i]:
            for j in range(i * i, limit, i):
                is_prime[j] = False
    return is_prime


class ZeroSource:
    """Random source that always returns zero bits"""

    def getrandbits(self, k):
        return 0


class TestDecompose(unittest.TestCase):

    def test_decompose(self):
        self.assertEqual(decompose(561), (4, 35))
        self.assertEqual(decompose(2047), (1, 1023))
        params = decompose(2 ** 20 * 3 + 1)
        self.assertEqual((params.r, params.u), (20, 3))


class TestWitnessRound(unittest.TestCase):

    def test_strong_pseudoprime(self):
        # 2047 = 23 * 89 fools base 2 but not base 3
        r, u = decompose(2047)
        self.assertTrue(witness_round(2, r, u, 2047))
        self.assertFalse(witness_round(3, r, u, 2047))

    def test_carmichael(self):
        r, u = decompose(561)
        self.assertFalse(witness_round(2, r, u, 561))

    def test_prime_passes_every_base(self):
        r, u = decompose(997)
        for a in range(2, 996):
            self.assertTrue(witness_round(a, r, u, 997))


class TestMillerRabin(unittest.TestCase):

    def test_small_numbers(self):
        rng = random.Random(10)
        table = sieve(10000)
        for n in range(10000):
            self.assertEqual(miller_rabin(n, 20, rng), table[n], n)

    def test_examples(self):
        self.assertTrue(is_probable_prime(997, 10))
        self.assertFalse(is_probable_prime(999, 10))
        self.assertTrue(miller_rabin(2))
        self.assertTrue(miller_rabin(3))
        self.assertFalse(miller_rabin(4))
        self.assertFalse(miller_rabin(1))
        self.assertFalse(miller_rabin(0))
        self.assertFalse(miller_rabin(-7))

    def test_large(self):
        self.assertTrue(miller_rabin(2 ** 127 - 1))
        self.assertTrue(miller_rabin(2 ** 521 - 1))
        self.assertFalse(miller_rabin(2 ** 128 + 1))
        self.assertFalse(miller_rabin((2 ** 61 - 1) * (2 ** 89 - 1)))

    def test_carmichael_numbers(self):
        for n in (561, 1105, 1729, 2465, 2821, 6601, 8911, 41041, 825265):
            self.assertFalse(miller_rabin(n, 40, random.Random(n)), n)

    def test_invalid_rounds(self):
        with self.assertRaises(InvalidArgument):
            miller_rabin(97, 0)
        with self.assertRaises(InvalidArgument):
            miller_rabin(97.0)

    def test_concurrent_agreement(self):
        composite = (2 ** 61 - 1) * (2 ** 31 - 1)
        prime = 2 ** 89 - 1

        def check(seed):
            rng = random.Random(seed)
            return miller_rabin(composite, 5, rng), miller_rabin(prime, 5, rng)

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(check, range(64)))

        self.assertEqual(results, [(False, True)] * 64)


class TestRandomPrime(unittest.TestCase):

    def test_bit_length(self):
        rng = random.Random(11)
        for bits in (2, 3, 8, 16, 64, 128, 256):
            p = random_prime(bits, 20, rng)
            self.assertEqual(p.bit_length(), bits)
            self.assertTrue(p & 1)
            self.assertTrue(miller_rabin(p, 20, rng))

    def test_alias(self):
        self.assertIs(sample_prime, random_prime)
        self.assertEqual(random_prime(2), 3)

    def test_deterministic_with_seed(self):
        self.assertEqual(random_prime(64, rng=random.Random(12)), random_prime(64, rng=random.Random(12)))

    def test_exhaustion(self):
        # Every candidate is 0b1000000000000001 = 32769 = 3 * 10923
        with self.assertRaises(GenerationExhausted) as context:
            random_prime(16, rng=ZeroSource(), max_attempts=3)
        self.assertEqual(context.exception.attempts, 3)

    def test_invalid(self):
        with self.assertRaises(InvalidArgument):
            random_prime(1)
        with self.assertRaises(InvalidArgument):
            random_prime(16, 0)
        with self.assertRaises(InvalidArgument):
            random_prime(16, max_attempts=0)


class TestSafePrime(unittest.TestCase):

    def test_safe_prime(self):
        rng = random.Random(13)
        q, p = random_safe_prime(64, 20, rng)
        self.assertEqual(p, 2 * q + 1)
        self.assertEqual(p.bit_length(), 64)
        self.assertTrue(miller_rabin(q, 20, rng))
        self.assertTrue(miller_rabin(p, 20, rng))

    def test_smallest(self):
        self.assertEqual(random_safe_prime(3, rng=random.Random(14)), (3, 7))

    def test_exhaustion(self):
        # q is always 0b10000001 = 129 = 3 * 43, never prime
        with self.assertRaises(GenerationExhausted):
            random_safe_prime(9, rng=ZeroSource(), max_attempts=2)

"""Key generation, mainly focusing on the generation of random large primes.

Generates IFC (RSA) key pairs loosely following FIPS 186-5 probable-prime generation. Sizes down to 512 bits are
accepted because JSEncrypt-compatible peers default to 1024-bit keys and legacy fixtures use 512.

Typical usage example:

    check_prime(9973)
    comps = generate_key_pair(1024)
    n, e, d, p, q = comps
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import logging
import math
import secrets
import time
import typing

logger = logging.getLogger(__name__)

MIN_KEY_SIZE: int = 512
DEFAULT_PUBLIC_EXPONENT: int = 65537

_SMALL_PRIMES: list[int] = []
_SMALL_PRIMES_CAP: int = 0
_MINIMUM_PRIME_SEPARATION: int = 100


class KeyComponents(typing.NamedTuple):
    """Raw integers of a freshly generated two-prime key."""
    mod: int
    pub_exp: int
    priv_exp: int
    p: int
    q: int


def _sieve(n: int = 10000) -> list[int]:
    """Sieve of Eratosthenes over odd numbers only, up to and including `n`."""
    if n < 2:
        return []
    i_size = (n - 1) // 2
    candidate: list[bool] = [True] * i_size
    for i in range(int(n**0.5) // 2):
        if candidate[i]:
            r = 2 * i + 3
            for j in range((r * r - 3) // 2, i_size, r):
                candidate[j] = False
    return [2] + [(no * 2 + 3) for no, ele in enumerate(candidate) if ele]


def get_pre_primes(n: int = 10000, change: bool = False) -> list[int]:
    """Get the small primes used for trial division, sieving if necessary.

    The module keeps the last sieve as a cache. Re-sieving happens when a larger bound is requested, when `change`
    forces it or when the cache is empty.

    Args:
        n: The number up to which to generate primes. Must be >= 0.
        change: Whether to force a recomputation of primes. Defaults to False.

    Returns:
        List of primes in ascending order, covering at least up to `n` unless `change` is True.

    Raises:
        ValueError: If `n` is negative.
    """
    if n < 0:
        raise ValueError("n must be >= 0")
    global _SMALL_PRIMES
    global _SMALL_PRIMES_CAP
    if n > _SMALL_PRIMES_CAP or change or not _SMALL_PRIMES:
        _SMALL_PRIMES = _sieve(n)
        _SMALL_PRIMES_CAP = n
    return _SMALL_PRIMES


def _trial_division(no: int, n: int = 10000) -> bool:
    """Returns False if `no` has a small prime factor (other than itself), True otherwise."""
    if no < 2:
        return False
    for prime in get_pre_primes(n):
        if prime**2 > no:
            return True
        if no % prime == 0:
            return False
    return True


def _miller_rabin(w: int, iters: int) -> bool:
    """Miller-Rabin probabilistic primality test (FIPS 186-5, B.3.1).

    Args:
        w: Odd integer to be tested.
        iters: Number of rounds with random bases.

    Returns:
        True if `w` is probably prime, False if it is certainly composite.
    """
    if w <= 3:
        return w in (2, 3)
    tw = w - 1
    a = (tw & -tw).bit_length() - 1
    m = tw >> a
    for _ in range(iters):
        b = secrets.randbelow(w - 3) + 2
        z = pow(b, m, w)
        if z in (1, w - 1):
            continue
        for _ in range(1, a):
            z = pow(z, 2, w)
            if z == w - 1:
                break
            if z == 1:
                return False
        else:
            return False
    return True


def check_prime(candidate: int, iters: int | None = None, n: int = 10000) -> bool:
    """Trial division by small primes followed by Miller-Rabin.

    Args:
        candidate: The number to test.
        iters: Miller-Rabin rounds. Defaults follow FIPS 186-5 Appendix C.1 for the candidate's size.
        n: Bound of the small primes used for trial division.

    Returns:
        True if `candidate` is probably prime, False otherwise.
    """
    if candidate < 2:
        return False
    if not _trial_division(candidate, n):
        return False
    if iters is None:
        if candidate.bit_length() <= 512:
            iters = 40
        elif candidate.bit_length() <= 1024:
            iters = 56
        elif candidate.bit_length() <= 1536:
            iters = 64
        elif candidate.bit_length() <= 2048:
            iters = 70
        else:
            iters = 74
    return _miller_rabin(candidate, iters)


def _generate_probable_prime(size: int, pub: int = DEFAULT_PUBLIC_EXPONENT, prm_p: int | None = None) -> int:
    """Draws random `size`-bit candidates until one is a usable RSA prime.

    The two top bits are forced so that the product of two such primes has exactly twice the bit length. When
    `prm_p` is given the candidate must also lie far enough from it.

    Args:
        size: Bit length of the prime.
        pub: The public exponent; ``p - 1`` must be coprime to it.
        prm_p: The already chosen first prime, if generating the second one.

    Returns:
        A probable prime.

    Raises:
        RuntimeError: If no prime turns up within a generous number of draws.
    """
    ml = 1 if prm_p is None else 2
    rep_cap = size * 5 * ml
    msk = (1 << size - 1) | (1 << size - 2) | 1
    for _ in range(rep_cap):
        cand = secrets.randbits(size) | msk
        if prm_p is not None and abs(prm_p - cand) <= (1 << (size - _MINIMUM_PRIME_SEPARATION)):
            continue
        if math.gcd(cand - 1, pub) == 1 and check_prime(cand):
            return cand
    raise RuntimeError(f"Ran an improbable {rep_cap} loops with no prime found. Check system random number generator.")


def generate_primes(size: int, pub: int = DEFAULT_PUBLIC_EXPONENT) -> tuple[int, int]:
    """Generates two distinct primes whose product is a `size`-bit modulus.

    Args:
        size: The modulus size in bits. Must be even and at least `MIN_KEY_SIZE`.
        pub: The public exponent. Must be odd and greater than 2**16.

    Returns:
        The pair ``(p, q)``.

    Raises:
        ValueError: If `size` or `pub` are not acceptable.
    """
    if size < MIN_KEY_SIZE:
        raise ValueError(f"Size must be at least {MIN_KEY_SIZE}.")
    if size % 2 != 0:
        raise ValueError("Size must be an even number.")
    if pub % 2 == 0 or not 2**16 < pub < 2**256:
        raise ValueError("Public exponent does not meet requirements.")
    p = _generate_probable_prime(size // 2, pub)
    q = _generate_probable_prime(size // 2, pub, p)
    while p == q:
        q = _generate_probable_prime(size // 2, pub, p)
    return p, q


def generate_key_pair(size: int, pub: int = DEFAULT_PUBLIC_EXPONENT) -> KeyComponents:
    """Generates the integers of an RSA key pair.

    The private exponent is the inverse of `pub` modulo ``lcm(p - 1, q - 1)``.

    Args:
        size: The modulus size in bits.
        pub: The public exponent. Defaults to 65537.

    Returns:
        The generated components.
    """
    started = time.perf_counter()
    p, q = generate_primes(size, pub)
    totient = math.lcm(p - 1, q - 1)
    d = pow(pub, -1, totient)
    logger.debug("Generated %d-bit key pair in %.3fs", size, time.perf_counter() - started)
    return KeyComponents(p * q, pub, d, p, q)

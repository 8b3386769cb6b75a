import math
import secrets

from petlib.bn import Bn


def ensure_bn(x):
    """
    Ensure that value is big number.

    Integers of any size are converted through their decimal representation.

    >>> isinstance(ensure_bn(42), Bn)
    True
    >>> ensure_bn(2 ** 70) == Bn(2).pow(70)
    True
    >>> isinstance(ensure_bn(Bn(42)), Bn)
    True
    """
    if isinstance(x, Bn):
        return x
    else:
        return Bn.from_decimal(str(int(x)))


def get_random_num(bits):
    """
    Draw a random number of given bitlength.

    >>> x = get_random_num(6)
    >>> x < 2**6
    True
    """
    order = Bn(2).pow(bits)
    return order.random()


def sample_invertible(modulus):
    """
    Draw a uniformly random unit of the ring of integers modulo ``modulus``.

    Candidates are drawn from :math:`[0, n)` and rejected until one is coprime to :math:`n`.

    >>> x = sample_invertible(Bn(15))
    >>> math.gcd(int(x), 15)
    1
    """
    modulus = ensure_bn(modulus)
    while True:
        candidate = modulus.random()
        if candidate != 0 and math.gcd(int(candidate), int(modulus)) == 1:
            return candidate


def sample_nonzero(modulus):
    """Draw a uniformly random non-zero number below ``modulus``."""
    modulus = ensure_bn(modulus)
    while True:
        candidate = modulus.random()
        if candidate != 0:
            return candidate


def random_bits(num):
    """
    Draw a list of independent uniform booleans.

    >>> len(random_bits(5))
    5
    """
    return [secrets.randbits(1) == 1 for _ in range(num)]


def secure_shuffle(items):
    """Shuffle a list in place using the system CSPRNG."""
    secrets.SystemRandom().shuffle(items)
    return items


def to_fixed_bytes(value, width):
    """
    Big-endian encoding of a non-negative number, left-padded to ``width`` bytes.

    >>> to_fixed_bytes(Bn(258), 4)
    b'\\x00\\x00\\x01\\x02'
    """
    encoded = ensure_bn(value).binary()
    if len(encoded) > width:
        raise ValueError("Value does not fit in {} bytes".format(width))
    return encoded.rjust(width, b"\x00")

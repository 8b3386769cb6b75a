r"""
Key pairs for Benaloh's cryptosystem.

The public key is a triple :math:`(r, n, y)` and the secret key is :math:`\phi(n)`. The triple
must be *perfectly consonant*: :math:`r \mid \phi` and :math:`\gcd(r, \phi / r) = 1`. This is
what makes decryption, i.e. decomposition of a residue into its class and witness, possible.

The primes are drawn from two arithmetic sequences sharing a non-zero offset :math:`b`:

.. math::

    q = r x + b, \qquad p = r^2 x' + r b + 1

so that :math:`r` divides :math:`p - 1` exactly once.

Example:

>>> keypair = KeyPair.keygen(ring_bits=8, group_bits=32)
>>> keypair.check_perfect_consonance()
True
"""

import logging
import math

import attr
from petlib.bn import Bn
from petlib.pack import encode, decode, register_coders

from benaloh import consts
from benaloh.exceptions import ConsonanceError, KeyGenerationError
from benaloh.residues import ClearResidue, GroupModulus, RingModulus, rth_root
from benaloh.utils import ensure_bn, sample_nonzero


logger = logging.getLogger(__name__)


@attr.s(frozen=True)
class PublicKey:
    """
    Public parameters :math:`(r, n, y)`, where :math:`y` is a unit but not an :math:`r`-th residue.

    Args:
        r (RingModulus): Ring modulus.
        n (GroupModulus): Group modulus.
        y (OpaqueResidue): Base of the plaintext.
    """

    r = attr.ib()
    n = attr.ib()
    y = attr.ib()

    def invert_y(self):
        """Return the multiplicative inverse of :math:`y`."""
        return self.y.invert()

    def sample_invertible(self):
        """Sample a random element of the multiplicative group modulo :math:`n`."""
        return self.n.random()

    def encrypt(self, rc):
        """Encrypt a plaintext class with fresh randomness."""
        return ClearResidue.random(rc, self)


@attr.s(frozen=True, repr=False)
class SecretKey:
    """
    The Euler totient :math:`\\phi(n)`.
    """

    phi = attr.ib(converter=ensure_bn)

    def __repr__(self):
        return "SecretKey(...)"


@attr.s(frozen=True)
class KeyPair:
    """
    A public key together with the matching secret key.
    """

    pk = attr.ib()
    sk = attr.ib()

    def check_perfect_consonance(self):
        """
        Check :math:`r \\mid \\phi` and :math:`r \\nmid \\phi / r`.

        Since :math:`r` is prime, the second condition is :math:`\\gcd(r, \\phi / r) = 1`.
        """
        r = int(self.pk.r.modulus)
        phi = int(self.sk.phi)
        divisible = phi % r == 0
        indivisible = (phi // r) % r != 0
        return divisible and indivisible

    def rth_root_exp(self):
        """
        The exponent :math:`A` in :math:`A r + B \\phi / r = 1`.

        It depends on the key pair only, and raising an :math:`r`-th residue to it gives a root.

        Raises:
            ConsonanceError: If :math:`r` and :math:`\\phi / r` are not relatively prime.
        """
        r = int(self.pk.r.modulus)
        phi = int(self.sk.phi)
        if phi % r != 0:
            raise ConsonanceError("r does not divide phi")
        phi_over_r = phi // r
        if math.gcd(r, phi_over_r) != 1:
            raise ConsonanceError("r and phi/r are not relatively prime")
        return self.pk.r.modulus.mod_inverse(ensure_bn(phi_over_r))

    def rth_root(self, z):
        """Shortcut for :py:func:`benaloh.residues.rth_root` with this key pair."""
        return rth_root(z, self.pk.r, self.sk.phi)

    def decompose(self, val):
        """Shortcut for :py:meth:`benaloh.residues.ClearResidue.decompose`."""
        return ClearResidue.decompose(val, self)

    @classmethod
    def keygen(
        cls,
        ring_bits=consts.DEFAULT_RING_BITS,
        group_bits=consts.DEFAULT_GROUP_BITS,
        safe_prime=consts.DEFAULT_SAFE_PRIME,
        max_attempts=consts.KEYGEN_MAX_ATTEMPTS,
    ):
        """
        Generate a perfectly consonant key pair.

        The ring size depends on the application (it must exceed the number of voters), the group
        modulus size is the security parameter. Generation is repeated until the consonance check
        passes, at most ``max_attempts`` times.

        Args:
            ring_bits: Bit length of :math:`r`.
            group_bits: Bit length of the dominant term :math:`x` in the prime sequences.
            safe_prime: Require :math:`q` to be a safe prime. :math:`p - 1` is a multiple of
                :math:`r`, so :math:`p` is never safe.
            max_attempts: Number of full generation attempts.

        Raises:
            KeyGenerationError: If no consonant key pair was found.
        """
        if ring_bits < 2:
            raise ValueError("The ring modulus needs at least 2 bits")
        if group_bits < ring_bits:
            raise ValueError("The group size should be larger than the ring size")

        for attempt in range(max_attempts):
            try:
                keypair = _generate_keypair(ring_bits, group_bits, safe_prime)
            except KeyGenerationError as e:
                logger.info("Key pair attempt %d/%d failed: %s", attempt + 1, max_attempts, e)
                continue
            if keypair.check_perfect_consonance():
                return keypair
            logger.info(
                "Key pair attempt %d/%d is not perfectly consonant, regenerating",
                attempt + 1,
                max_attempts,
            )
        raise KeyGenerationError(
            "No perfectly consonant key pair after {} attempts".format(max_attempts)
        )


def keygen(
    ring_bits=consts.DEFAULT_RING_BITS,
    group_bits=consts.DEFAULT_GROUP_BITS,
    safe_prime=consts.DEFAULT_SAFE_PRIME,
    max_attempts=consts.KEYGEN_MAX_ATTEMPTS,
):
    """Generate a perfectly consonant key pair. See :py:meth:`KeyPair.keygen`."""
    return KeyPair.keygen(ring_bits, group_bits, safe_prime, max_attempts)


def _is_acceptable_prime(candidate, safe):
    if not candidate.is_prime():
        return False
    if safe:
        return ensure_bn((int(candidate) - 1) // 2).is_prime()
    return True


def _search_sequence(step, offset, xbound, safe):
    """
    Find a prime in the arithmetic sequence ``step * x + offset`` for random ``x < xbound``.
    """
    for _ in range(consts.PRIME_SEARCH_MAX_CANDIDATES):
        x = xbound.random()
        if x == 0:
            continue
        candidate = step * x + offset
        if _is_acceptable_prime(candidate, safe):
            return candidate
    raise KeyGenerationError(
        "No prime found in the sequence {} * x + {}".format(int(step), int(offset))
    )


def generate_q(r, xbound, b, safe=False):
    """Generate :math:`q = r x + b`."""
    return _search_sequence(r, b, xbound, safe)


def generate_p(r, xbound, b):
    """Generate :math:`p = r^2 x + r b + 1`."""
    return _search_sequence(r * r, r * b + 1, xbound, False)


def sample_nonresidue(n, r, phi):
    """
    Sample a unit :math:`y` with :math:`y^{\\phi / r} \\neq 1`, i.e. not an :math:`r`-th residue.

    Args:
        n (GroupModulus): Group modulus.
        r: Ring modulus as an integer.
        phi: Euler's totient of :math:`n`.
    """
    quotient = ensure_bn(int(phi) // int(r))
    while True:
        y = n.random()
        if not (y ** quotient).is_one():
            return y


def _generate_keypair(ring_bits, group_bits, safe_prime):
    r = Bn.get_prime(ring_bits, safe=0)
    xbound = Bn(2).pow(group_bits)
    b = sample_nonzero(r)
    if b == 1:
        # q - 1 would be a multiple of r, so r^2 divides phi.
        raise KeyGenerationError("Offset b = 1 cannot give a consonant key pair")

    q = generate_q(r, xbound, b, safe_prime)
    p = generate_p(r, xbound, b)

    n = p * q
    phi = (p - 1) * (q - 1)
    group = GroupModulus(n)
    y = sample_nonresidue(group, r, phi)

    logger.debug("Generated key pair with %d-bit r and %d-bit n", r.num_bits(), n.num_bits())
    return KeyPair(PublicKey(RingModulus(r), group, y), SecretKey(phi))


def enc_PublicKey(obj):
    return encode([obj.r, obj.n, obj.y])


def dec_PublicKey(data):
    r, n, y = decode(data)
    return PublicKey(r, n, y)


register_coders(PublicKey, 24, enc_PublicKey, dec_PublicKey)

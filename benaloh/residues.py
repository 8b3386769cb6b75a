r"""
Residue arithmetic for Benaloh's cryptosystem.

Two moduli are involved. The prime ring modulus :math:`r` defines :math:`\mathbb{Z}_r`, where
plaintexts (residue classes) live. The composite group modulus :math:`n = pq` defines
:math:`\mathbb{Z}_n^*`, where ciphertexts and witnesses live. When the public key
:math:`(r, n, y)` is perfectly consonant, every unit :math:`w` of :math:`\mathbb{Z}_n^*` has a
unique decomposition

.. math::

    w = y^c x^r \mod n

with :math:`0 \leq c < r`. The class :math:`c` is the plaintext, the witness :math:`x` is the
randomness of the encryption.

>>> ring = RingModulus(7)
>>> ring.element(5) + ring.element(4)
ResidueClass(2, 7)
>>> group = GroupModulus(35)
>>> group.element(2) * group.element(18)
OpaqueResidue(1, 35)
"""

import math

import attr
from petlib.bn import Bn
from petlib.pack import encode, decode, register_coders

from benaloh.exceptions import (
    ConsonanceError,
    DecompositionError,
    ModulusMismatchError,
    ResidueArithmeticError,
)
from benaloh.utils import ensure_bn, sample_invertible, to_fixed_bytes


class RingModulus:
    """
    The ring :math:`\\mathbb{Z}_r` of residue classes.

    Args:
        modulus: The prime :math:`r`.
    """

    def __init__(self, modulus):
        self.modulus = ensure_bn(modulus)

    def element(self, value):
        """Reduce an integer into a residue class."""
        return ResidueClass(value, self)

    def zero(self):
        return ResidueClass(0, self)

    def one(self):
        return ResidueClass(1, self)

    def random(self):
        """Draw a uniformly random residue class."""
        return ResidueClass(self.modulus.random(), self)

    def num_bits(self):
        return self.modulus.num_bits()

    def num_bytes(self):
        return (self.num_bits() + 7) // 8

    def __int__(self):
        return int(self.modulus)

    def __eq__(self, other):
        return isinstance(other, RingModulus) and self.modulus == other.modulus

    def __hash__(self):
        return hash(("RingModulus", int(self.modulus)))

    def __repr__(self):
        return "RingModulus({})".format(int(self.modulus))


class GroupModulus:
    """
    The multiplicative group :math:`\\mathbb{Z}_n^*`.

    Args:
        modulus: The composite :math:`n`.
    """

    def __init__(self, modulus):
        self.modulus = ensure_bn(modulus)

    def element(self, value):
        return OpaqueResidue(value, self)

    def identity(self):
        return OpaqueResidue(1, self)

    def random(self):
        """Draw a uniformly random invertible element by rejection."""
        return OpaqueResidue(sample_invertible(self.modulus), self)

    def num_bits(self):
        return self.modulus.num_bits()

    def num_bytes(self):
        """Width of the fixed-size encoding of the group elements."""
        return (self.num_bits() + 7) // 8

    def __int__(self):
        return int(self.modulus)

    def __eq__(self, other):
        return isinstance(other, GroupModulus) and self.modulus == other.modulus

    def __hash__(self):
        return hash(("GroupModulus", int(self.modulus)))

    def __repr__(self):
        return "GroupModulus({})".format(int(self.modulus))


class ResidueClass:
    """
    Element of :math:`\\mathbb{Z}_r`.

    Equality compares the reduced representatives, so ``ResidueClass(9, ring)`` equals
    ``ResidueClass(2, ring)`` when :math:`r = 7`.

    Args:
        value: Integer representative.
        ring (RingModulus): The ring the class lives in.
    """

    def __init__(self, value, ring):
        self.ring = ring
        self.value = ensure_bn(value) % ring.modulus

    def _check_ring(self, other):
        if not isinstance(other, ResidueClass):
            raise TypeError("Expected a ResidueClass. Got: {}".format(other))
        if other.ring != self.ring:
            raise ModulusMismatchError(
                "Residue classes from different rings: {} and {}".format(
                    self.ring, other.ring
                )
            )

    def __add__(self, other):
        self._check_ring(other)
        return ResidueClass(self.value.mod_add(other.value, self.ring.modulus), self.ring)

    def __sub__(self, other):
        self._check_ring(other)
        return ResidueClass(self.value.mod_sub(other.value, self.ring.modulus), self.ring)

    def __mul__(self, other):
        self._check_ring(other)
        return ResidueClass(self.value.mod_mul(other.value, self.ring.modulus), self.ring)

    def __neg__(self):
        return ResidueClass(Bn(0).mod_sub(self.value, self.ring.modulus), self.ring)

    def is_zero(self):
        return self.value == 0

    @classmethod
    def from_bytes(cls, data, ring):
        """
        Interpret big-endian bytes as an integer and reduce it into the ring.

        >>> ResidueClass.from_bytes(b"\\x01\\x00", RingModulus(7))
        ResidueClass(4, 7)
        """
        return cls(Bn.from_binary(data), ring)

    def to_bytes(self):
        return to_fixed_bytes(self.value, self.ring.num_bytes())

    def __int__(self):
        return int(self.value)

    def __index__(self):
        return int(self.value)

    def __eq__(self, other):
        if not isinstance(other, ResidueClass):
            return NotImplemented
        return self.ring == other.ring and self.value == other.value

    def __hash__(self):
        return hash(("ResidueClass", int(self.value), int(self.ring.modulus)))

    def __repr__(self):
        return "ResidueClass({}, {})".format(int(self.value), int(self.ring.modulus))


class OpaqueResidue:
    """
    Unit of :math:`\\mathbb{Z}_n^*` whose decomposition is unknown to its holder.

    Ciphertexts, commitments and anything else that travels in a public transcript are opaque
    residues.

    Args:
        value: Integer representative.
        group (GroupModulus): The group the element lives in.
    """

    def __init__(self, value, group):
        self.group = group
        self.value = ensure_bn(value) % group.modulus

    def _check_group(self, other):
        if not isinstance(other, OpaqueResidue):
            raise TypeError("Expected an OpaqueResidue. Got: {}".format(other))
        if other.group != self.group:
            raise ModulusMismatchError(
                "Residues from different groups: {} and {}".format(self.group, other.group)
            )

    def __mul__(self, other):
        self._check_group(other)
        return OpaqueResidue(self.value.mod_mul(other.value, self.group.modulus), self.group)

    def __truediv__(self, other):
        self._check_group(other)
        return self * other.invert()

    def invert(self):
        n = self.group.modulus
        if not self.is_unit():
            raise ResidueArithmeticError("{} is not invertible".format(self))
        return OpaqueResidue(self.value.mod_inverse(n), self.group)

    def __pow__(self, exponent):
        """
        Raise to a power. The exponent is a :py:class:`ResidueClass` or an integer.

        Negative integer exponents invert the base first.
        """
        if isinstance(exponent, ResidueClass):
            exponent = exponent.value
        exponent = ensure_bn(exponent)
        base = self
        if exponent < 0:
            base = self.invert()
            exponent = -exponent
        return OpaqueResidue(
            base.value.mod_pow(exponent, self.group.modulus), self.group
        )

    def is_one(self):
        return self.value == 1

    def is_unit(self):
        """True iff the value is invertible modulo :math:`n`."""
        return self.value != 0 and math.gcd(int(self.value), int(self.group.modulus)) == 1

    def to_bytes(self):
        """Fixed-width big-endian encoding."""
        return to_fixed_bytes(self.value, self.group.num_bytes())

    def __int__(self):
        return int(self.value)

    def __eq__(self, other):
        if not isinstance(other, OpaqueResidue):
            return NotImplemented
        return self.group == other.group and self.value == other.value

    def __hash__(self):
        return hash(("OpaqueResidue", int(self.value), int(self.group.modulus)))

    def __repr__(self):
        return "OpaqueResidue({}, {})".format(int(self.value), int(self.group.modulus))


@attr.s(frozen=True, eq=True, hash=True)
class ClearResidue:
    r"""
    Unit of :math:`\mathbb{Z}_n^*` together with its decomposition.

    The invariant is :math:`val = y^{rc} \cdot witness^r \mod n`. Multiplying two clear residues
    multiplies the values and the witnesses and adds the classes, which is the additive
    homomorphism of the scheme.

    Use :py:meth:`compose`, :py:meth:`decompose` or :py:meth:`random` rather than the
    constructor, which does not check the invariant.
    """

    val = attr.ib()
    rc = attr.ib()
    witness = attr.ib()
    ambience = attr.ib(eq=False, hash=False, repr=False)

    @classmethod
    def compose(cls, rc, witness, pk):
        r"""
        Build a residue from a chosen class and witness.

        Args:
            rc (ResidueClass): Residue class, the plaintext.
            witness (OpaqueResidue): Unit of :math:`\mathbb{Z}_n^*`, the randomness.
            pk: Public key :math:`(r, n, y)`.
        """
        if not isinstance(rc, ResidueClass):
            rc = pk.r.element(rc)
        if not isinstance(witness, OpaqueResidue):
            witness = pk.n.element(witness)
        if rc.ring != pk.r or witness.group != pk.n:
            raise ModulusMismatchError("Class or witness does not match the public key")

        val = (pk.y ** rc) * (witness ** pk.r.modulus)
        return cls(val=val, rc=rc, witness=witness, ambience=pk)

    @classmethod
    def decompose(cls, val, keypair):
        r"""
        Recover the class and the witness of an opaque value. Equivalent to decryption.

        Raising any unit to :math:`\phi / r` kills the witness, since
        :math:`x^{r \phi / r} = x^\phi = 1`. What is left is :math:`(y^{\phi/r})^{rc}`, and
        :math:`rc` is found by a brute-force discrete log of order :math:`r`. The witness is then
        the :math:`r`-th root of :math:`val \cdot y^{-rc}`.

        Args:
            val (OpaqueResidue): The value to decompose.
            keypair: Full key pair, the secret key is required.

        Raises:
            DecompositionError: If no class or no witness is found.
        """
        pk, sk = keypair.pk, keypair.sk
        if not isinstance(val, OpaqueResidue):
            val = pk.n.element(val)
        if val.group != pk.n:
            raise ModulusMismatchError("Value does not live under the key's group modulus")

        phi_over_r = _exact_quotient(sk.phi, pk.r.modulus)
        y_to_phi_over_r = pk.y ** phi_over_r
        val_to_phi_over_r = val ** phi_over_r
        exp = discrete_log(
            y_to_phi_over_r.value,
            val_to_phi_over_r.value,
            pk.r.modulus,
            pk.n.modulus,
        )
        if exp is None:
            raise DecompositionError("No residue class found for {}".format(val))
        rc = pk.r.element(exp)

        witness = rth_root(val * (pk.invert_y() ** rc), pk.r, sk.phi)
        if witness is None:
            raise DecompositionError("No witness found for {}".format(val))

        return cls(val=val, rc=rc, witness=witness, ambience=pk)

    @classmethod
    def random(cls, rc=None, pk=None):
        """
        Sample a fresh residue. The class is uniform unless fixed by the caller.

        Args:
            rc: Optional residue class (or integer) to force.
            pk: Public key.
        """
        if pk is None:
            raise TypeError("A public key is needed to sample a residue")
        if rc is None:
            rc = pk.r.random()
        witness = pk.n.random()
        return cls.compose(rc, witness, pk)

    def __mul__(self, other):
        if not isinstance(other, ClearResidue):
            raise TypeError("Expected a ClearResidue. Got: {}".format(other))
        if self.ambience != other.ambience:
            raise ModulusMismatchError("Clear residues under different public keys")
        return ClearResidue(
            val=self.val * other.val,
            rc=self.rc + other.rc,
            witness=self.witness * other.witness,
            ambience=self.ambience,
        )

    def is_exact_residue(self):
        """True iff the residue is an :math:`r`-th power, i.e. its class is zero."""
        return self.rc.is_zero()

    def is_consistent(self):
        """
        Check the decomposition invariant, e.g. on a residue received from a peer. The value and
        the witness must be units, since :math:`y^c 0^r = 0` satisfies the equation.
        """
        try:
            recomposed = ClearResidue.compose(self.rc, self.witness, self.ambience)
        except (ModulusMismatchError, TypeError, ValueError, AttributeError):
            return False
        if not isinstance(self.val, OpaqueResidue) or not self.val.is_unit():
            return False
        return recomposed.witness.is_unit() and recomposed.val == self.val

    def obscure(self):
        """Forget the decomposition."""
        return self.val


def _exact_quotient(phi, r):
    phi, r = int(phi), int(r)
    if r <= 0 or phi % r != 0:
        raise ConsonanceError("r does not divide phi")
    return ensure_bn(phi // r)


def rth_root(z, r, phi):
    r"""
    Find an :math:`r`-th root of :math:`z` modulo :math:`n`, if one exists.

    Perfect consonance gives :math:`\gcd(r, \phi/r) = 1`, hence Bezout coefficients with
    :math:`A r + B \phi / r = 1`. For an :math:`r`-th residue :math:`z`, the candidate
    :math:`z^A` is a root. Failing the final check means :math:`z` is not an :math:`r`-th residue,
    so this doubles as a residuosity test.

    Args:
        z (OpaqueResidue): The value. Carries the group modulus :math:`n`.
        r: The ring modulus, as :py:class:`RingModulus` or integer.
        phi: Euler's totient of :math:`n`.

    Returns:
        OpaqueResidue or None: A root, or None if :math:`z` is not an :math:`r`-th residue.
        Non-units of :math:`\mathbb{Z}_n` have no root in :math:`\mathbb{Z}_n^*`.

    Raises:
        ConsonanceError: If :math:`r \nmid \phi` or :math:`\gcd(r, \phi/r) \neq 1`.
    """
    if isinstance(r, RingModulus):
        r = r.modulus
    r = ensure_bn(r)
    phi_over_r = _exact_quotient(phi, r)
    if math.gcd(int(r), int(phi_over_r)) != 1:
        raise ConsonanceError("r and phi/r are not relatively prime")

    if not z.is_unit():
        return None
    root_exp = r.mod_inverse(phi_over_r)
    root = z ** root_exp
    if root ** r == z:
        return root
    return None


def discrete_log(base, target, order, modulus):
    """
    Brute-force discrete logarithm of ``target`` in ``base``, for a base of small order.

    Tries every exponent in :math:`[0, order)`, keeping a running power of the base, so the cost
    is one modular multiplication per candidate.

    >>> int(discrete_log(3, 13, 6, 7))
    3
    >>> discrete_log(2, 3, 3, 7) is None
    True

    Returns:
        Bn or None: The exponent, or None if there is none below ``order``.
    """
    base, target = ensure_bn(base), ensure_bn(target)
    modulus = ensure_bn(modulus)
    target = target % modulus
    acc = Bn(1) % modulus
    for exp in range(int(order)):
        if acc == target:
            return ensure_bn(exp)
        acc = acc.mod_mul(base, modulus)
    return None


def enc_RingModulus(obj):
    return encode(obj.modulus)


def dec_RingModulus(data):
    return RingModulus(decode(data))


def enc_GroupModulus(obj):
    return encode(obj.modulus)


def dec_GroupModulus(data):
    return GroupModulus(decode(data))


def enc_ResidueClass(obj):
    return encode([obj.value, obj.ring])


def dec_ResidueClass(data):
    d = decode(data)
    return ResidueClass(d[0], d[1])


def enc_OpaqueResidue(obj):
    return encode([obj.value, obj.group])


def dec_OpaqueResidue(data):
    d = decode(data)
    return OpaqueResidue(d[0], d[1])


register_coders(RingModulus, 20, enc_RingModulus, dec_RingModulus)
register_coders(GroupModulus, 21, enc_GroupModulus, dec_GroupModulus)
register_coders(ResidueClass, 22, enc_ResidueClass, dec_ResidueClass)
register_coders(OpaqueResidue, 23, enc_OpaqueResidue, dec_OpaqueResidue)

r"""
Cut-and-choose proof that a ballot belongs to one of a few public residue classes.

.. math::

    PK\{ (c, x): w = y^c x^r \land c \in S \}

In a simple election :math:`S = \{0, 1\}`, but nothing here is specific to that set.

The commitment is a list of *capsules*. A capsule holds one fresh residue for every class in
:math:`S`, shuffled so that its order does not tell which element has which class. Per capsule,
the challenge decides between:

* *open*: the prover reveals the decomposition of every element of the capsule, showing the
  capsule was honestly built;
* *consume*: the prover picks the element :math:`e` sharing the ballot's class and reveals the
  ratio of witnesses :math:`x_e / x_w`. Then :math:`w \cdot (x_e / x_w)^r = e`, which shows
  :math:`w` and :math:`e` share a class without telling which one.

A ballot outside :math:`S` can survive only one of the two checks per capsule, so the cheating
probability is :math:`2^{-k}` for :math:`k` capsules. The challenge bits are derived from the
hash of the commitment (Fiat-Shamir).
"""

import warnings
from collections import Counter

import attr

from benaloh import consts
from benaloh.base import Prover, Verifier, build_fiat_shamir_challenge
from benaloh.exceptions import CapsuleMismatchError, ProtocolStateError
from benaloh.residues import ClearResidue, OpaqueResidue, ResidueClass
from benaloh.utils import random_bits, secure_shuffle


def zero_or_one(ring):
    """
    The two classes of a yes/no ballot.

    >>> from benaloh.residues import RingModulus
    >>> zero_or_one(RingModulus(7))
    [ResidueClass(0, 7), ResidueClass(1, 7)]
    """
    return [ring.zero(), ring.one()]


@attr.s
class OpaqueCapsule:
    """
    A committed capsule: residues of every allowed class, in secret order.
    """

    elements = attr.ib()


@attr.s
class ClearCapsule:
    """
    A capsule together with the decomposition of its elements.
    """

    elements = attr.ib()

    @classmethod
    def generate(cls, classes, pk):
        """
        One fresh residue per class, shuffled.
        """
        elements = [ClearResidue.random(rc, pk) for rc in classes]
        secure_shuffle(elements)
        return cls(elements)

    def obscure(self):
        return OpaqueCapsule([elem.val for elem in self.elements])

    def consume(self, statement):
        """
        Show that the statement has the same class as one of the elements.

        If :math:`w` and :math:`e` share a class, :math:`e / w` is an exact :math:`r`-th residue
        with witness :math:`x_e / x_w`.

        Args:
            statement (ClearResidue): The ballot.

        Returns:
            ClearResidue: The exact residue :math:`e / w`.

        Raises:
            CapsuleMismatchError: If no element shares the class of the statement.
        """
        pk = statement.ambience
        for element in self.elements:
            if element.rc == statement.rc:
                witness = element.witness / statement.witness
                return ClearResidue.compose(pk.r.zero(), witness, pk)
        raise CapsuleMismatchError("Capsule does not have a matching element")


@attr.s
class OpenCapsule:
    """Response revealing a whole capsule."""

    capsule = attr.ib()


@attr.s
class ConsumeCapsule:
    """Response revealing the witness ratio between the ballot and one capsule element."""

    quotient = attr.ib()


@attr.s
class BallotProof:
    """
    Non-interactive transcript of a ballot-validity proof.
    """

    commitment = attr.ib()
    challenge = attr.ib()
    response = attr.ib()


class BallotStmt:
    """
    Proof statement: the class of ``ballot`` is one of ``classes``.

    Example:

    >>> from benaloh.keys import KeyPair
    >>> keypair = KeyPair.keygen(8, 32)
    >>> ballot = ClearResidue.random(1, keypair.pk)
    >>> stmt = BallotStmt(ballot.val, zero_or_one(keypair.pk.r), keypair.pk, confidence=32)
    >>> proof = stmt.prove(ballot)
    >>> stmt.verify(proof)
    True

    Args:
        ballot (OpaqueResidue): The encrypted ballot.
        classes: The allowed residue classes.
        pk: Public key.
        confidence: Number of capsules. The cheating probability is ``2 ** -confidence``.
    """

    def __init__(self, ballot, classes, pk, confidence=consts.CONFIDENCE):
        if not isinstance(ballot, OpaqueResidue):
            raise TypeError("Expected an OpaqueResidue. Got: {}".format(ballot))
        if not classes:
            raise ValueError("Need at least one allowed class")
        if confidence < consts.CONFIDENCE:
            warnings.warn(
                "Confidence {} is below the recommended {}".format(
                    confidence, consts.CONFIDENCE
                )
            )
        self.ballot = ballot
        self.classes = [
            rc if isinstance(rc, ResidueClass) else pk.r.element(rc) for rc in classes
        ]
        self.pk = pk
        self.confidence = confidence

    def get_prover(self, clear_ballot):
        if clear_ballot.val != self.ballot:
            raise ValueError("The decomposition does not match the ballot")
        return BallotProver(self, clear_ballot)

    def get_verifier(self):
        return BallotVerifier(self)

    def build_challenge(self, commitment):
        """
        Hash the ballot and every committed element, in order, into one bit per capsule.
        """
        elems = [self.ballot]
        for capsule in commitment:
            elems.extend(capsule.elements)
        return build_fiat_shamir_challenge(elems, self.confidence)

    def prove(self, clear_ballot):
        """
        Generate the transcript of a non-interactive proof.

        Args:
            clear_ballot (ClearResidue): Decomposition of the ballot.

        Raises:
            CapsuleMismatchError: If the ballot's class is not allowed and a capsule gets consumed.
        """
        prover = self.get_prover(clear_ballot)
        commitment = prover.commit()
        challenge = self.build_challenge(commitment)
        response = prover.compute_response(challenge)
        return BallotProof(commitment=commitment, challenge=challenge, response=response)

    def verify(self, proof):
        """
        Verify a non-interactive proof.

        Returns:
            bool: True if verification succeeded, False otherwise.
        """
        if not isinstance(proof, BallotProof):
            return False
        try:
            commitment = list(proof.commitment)
            challenge = list(proof.challenge)
        except TypeError:
            return False
        if not self._well_formed(commitment):
            return False
        if challenge != self.build_challenge(commitment):
            return False
        return self.verify_responses(commitment, challenge, proof.response)

    def _well_formed(self, commitment):
        """
        One capsule per round, and units of the group only. The ballot must be a unit too.
        """
        if not self.ballot.is_unit() or len(commitment) != self.confidence:
            return False
        for capsule in commitment:
            if not isinstance(capsule, OpaqueCapsule):
                return False
            try:
                elements = list(capsule.elements)
            except TypeError:
                return False
            for elem in elements:
                if not isinstance(elem, OpaqueResidue) or elem.group != self.pk.n:
                    return False
                if not elem.is_unit():
                    return False
        return True

    def verify_responses(self, commitment, challenge, responses):
        """
        Check every response against its capsule and challenge bit.
        """
        try:
            responses = list(responses)
        except TypeError:
            return False
        if not len(commitment) == len(challenge) == len(responses):
            return False
        return all(
            self.verify_response(capsule, open_capsule, response)
            for capsule, open_capsule, response in zip(commitment, challenge, responses)
        )

    def verify_response(self, capsule, open_capsule, response):
        """
        Verify a single response.

        An opened capsule must match the committed values exactly, in order, every element must
        be consistent with its decomposition, and the revealed classes must be exactly the allowed
        ones. A consumed capsule must contain :math:`w \\cdot q^r`, where :math:`q` is the
        revealed witness ratio, a unit.
        """
        if open_capsule:
            if not isinstance(response, OpenCapsule) or not isinstance(
                response.capsule, ClearCapsule
            ):
                return False
            opened = response.capsule.elements
            if len(opened) != len(capsule.elements):
                return False
            for committed, elem in zip(capsule.elements, opened):
                if not isinstance(elem, ClearResidue) or elem.ambience != self.pk:
                    return False
                if committed != elem.val or not elem.is_consistent():
                    return False
            return Counter(elem.rc for elem in opened) == Counter(self.classes)

        if not isinstance(response, ConsumeCapsule):
            return False
        quotient = response.quotient
        if not isinstance(quotient, ClearResidue):
            return False
        witness = quotient.witness
        if not isinstance(witness, OpaqueResidue) or witness.group != self.pk.n:
            return False
        if not witness.is_unit():
            return False
        reconstructed = self.ballot * (witness ** self.pk.r.modulus)
        return any(elem == reconstructed for elem in capsule.elements)


class BallotProver(Prover):
    """The voter, who knows the decomposition of the ballot."""

    def __init__(self, stmt, clear_ballot):
        super().__init__(stmt)
        self.clear_ballot = clear_ballot
        self.capsules = None

    def commit(self):
        """
        Build ``confidence`` fresh capsules and return their opaque versions.
        """
        self.capsules = [
            ClearCapsule.generate(self.stmt.classes, self.stmt.pk)
            for _ in range(self.stmt.confidence)
        ]
        return [capsule.obscure() for capsule in self.capsules]

    def compute_response(self, challenge):
        """
        Open or consume each capsule according to its challenge bit.
        """
        if self.capsules is None:
            raise ProtocolStateError("Commit before responding")
        if len(challenge) != len(self.capsules):
            raise ValueError("Challenge and commitment not equal in length")

        responses = []
        for capsule, open_capsule in zip(self.capsules, challenge):
            if open_capsule:
                responses.append(OpenCapsule(capsule))
            else:
                responses.append(ConsumeCapsule(capsule.consume(self.clear_ballot)))
        return responses


class BallotVerifier(Verifier):
    """Interactive verifier. Needs only the public key."""

    def draw_challenge(self):
        return random_bits(len(self.commitment))

    def verify(self, response):
        if self.challenge is None:
            raise ProtocolStateError("Send a challenge before verifying")
        try:
            commitment = list(self.commitment)
        except TypeError:
            return False
        if not self.stmt._well_formed(commitment):
            return False
        return self.stmt.verify_responses(self.commitment, self.challenge, response)

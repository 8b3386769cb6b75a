r"""
Homomorphic tally and proof of its correctness.

The product :math:`P` of the ballots encrypts the sum of the votes. To show that :math:`P` decrypts
to the claimed total :math:`T` without revealing :math:`\phi`, the authority proves that

.. math::

    PK\{ (x): P y^{-T} = x^r \}

i.e. the statement has class zero. This is the knowledge-of-class protocol with the statement
class fixed to zero, so commitments have class zero as well and the response is a witness:

* Commitment: :math:`a = u^r`.
* Challenge: :math:`b \in \mathbb{Z}_r`.
* Response: :math:`z = u x^b`.
* Verification: :math:`z^r = a (P y^{-T})^b`.

With :math:`r` prime, two accepting transcripts for different challenges yield an :math:`r`-th
root of the statement, so each round has soundness error :math:`1/r`. Several rounds are run in
parallel, and the non-interactive version hashes all commitments into one challenge per round.
"""

import attr

from benaloh import consts
from benaloh.base import Prover, Verifier, build_fiat_shamir_challenge
from benaloh.exceptions import InvalidTallyError, ProtocolStateError
from benaloh.residues import ClearResidue, OpaqueResidue, ResidueClass


def tally(ballots, pk):
    """
    Multiply the encrypted ballots. The class of the product is the sum of the votes mod :math:`r`.

    Args:
        ballots: Opaque ballots.
        pk: Public key.
    """
    product = pk.n.identity()
    for ballot in ballots:
        product = product * ballot
    return product


@attr.s
class TallyProof:
    """
    Non-interactive transcript of a tally proof.
    """

    commitment = attr.ib()
    challenge = attr.ib()
    response = attr.ib()


class TallyStmt:
    """
    Proof statement: ``product`` decrypts to ``total``.

    Example:

    >>> from benaloh.keys import KeyPair
    >>> keypair = KeyPair.keygen(8, 32)
    >>> ballots = [keypair.pk.encrypt(v).val for v in (1, 0, 1)]
    >>> stmt = TallyStmt(tally(ballots, keypair.pk), 2, keypair.pk)
    >>> stmt.verify(stmt.prove(keypair))
    True

    Args:
        product (OpaqueResidue): Product of the ballots.
        total: Claimed tally, a residue class or an integer.
        pk: Public key.
        rounds: Number of parallel rounds.
    """

    def __init__(self, product, total, pk, rounds=consts.TALLY_ROUNDS):
        if not isinstance(product, OpaqueResidue):
            raise TypeError("Expected an OpaqueResidue. Got: {}".format(product))
        if not isinstance(total, ResidueClass):
            total = pk.r.element(total)
        if rounds < 1:
            raise ValueError("Need at least one round")
        self.product = product
        self.total = total
        self.pk = pk
        self.rounds = rounds

    @classmethod
    def from_ballots(cls, ballots, total, pk, rounds=consts.TALLY_ROUNDS):
        return cls(tally(ballots, pk), total, pk, rounds)

    @property
    def statement(self):
        """The residue :math:`P y^{-T}`, an exact :math:`r`-th residue if the tally is right."""
        return self.product * (self.pk.invert_y() ** self.total)

    def get_prover(self, keypair):
        return TallyProver(self, keypair)

    def get_verifier(self):
        return TallyVerifier(self)

    def build_challenge(self, commitment):
        elems = [self.product, self.total] + list(commitment)
        return build_fiat_shamir_challenge(elems, self.rounds, self.pk.r)

    def prove(self, keypair):
        """
        Generate the transcript of a non-interactive proof.

        Raises:
            InvalidTallyError: If the claimed total is wrong.
        """
        prover = self.get_prover(keypair)
        commitment = prover.commit()
        challenge = self.build_challenge(commitment)
        response = prover.compute_response(challenge)
        return TallyProof(commitment=commitment, challenge=challenge, response=response)

    def verify(self, proof):
        """
        Verify a non-interactive proof. Needs only the public key.

        Returns:
            bool: True if verification succeeded, False otherwise.
        """
        if not isinstance(proof, TallyProof):
            return False
        try:
            commitment = list(proof.commitment)
            challenge = list(proof.challenge)
        except TypeError:
            return False
        if len(commitment) != self.rounds or not self._well_formed(commitment):
            return False
        if challenge != self.build_challenge(commitment):
            return False
        return self.verify_responses(commitment, challenge, proof.response)

    def _well_formed(self, residues):
        """Units of the group only. A zero commitment and a zero response satisfy any total."""
        return all(
            isinstance(elem, OpaqueResidue) and elem.group == self.pk.n and elem.is_unit()
            for elem in residues
        )

    def verify_responses(self, commitment, challenge, responses):
        """
        Check :math:`z_i^r = a_i s^{b_i}` for every round.
        """
        try:
            responses = list(responses)
        except TypeError:
            return False
        if not len(commitment) == len(challenge) == len(responses):
            return False
        if not self._well_formed(responses):
            return False

        statement = self.statement
        r = self.pk.r.modulus
        return all(
            response ** r == commit * (statement ** b)
            for commit, b, response in zip(commitment, challenge, responses)
        )

    def verify_decryption(self, keypair):
        """
        Direct check by the key holder that the statement is an exact :math:`r`-th residue.
        """
        return keypair.rth_root(self.statement) is not None


class TallyProver(Prover):
    """
    The authority, who can decompose the statement with the secret key.

    Raises:
        InvalidTallyError: If the statement is not an exact residue.
    """

    def __init__(self, stmt, keypair):
        super().__init__(stmt)
        self.clear_statement = ClearResidue.decompose(stmt.statement, keypair)
        if not self.clear_statement.is_exact_residue():
            raise InvalidTallyError(
                "The product does not decrypt to {}".format(int(stmt.total))
            )
        self.clear_commitment = None

    def commit(self):
        """
        One fresh class-zero residue per round.
        """
        zero = self.stmt.pk.r.zero()
        self.clear_commitment = [
            ClearResidue.random(zero, self.stmt.pk) for _ in range(self.stmt.rounds)
        ]
        return [commit.val for commit in self.clear_commitment]

    def compute_response(self, challenge):
        """
        Compute :math:`u_i x^{b_i}` for every round.
        """
        if self.clear_commitment is None:
            raise ProtocolStateError("Commit before responding")
        if len(challenge) != len(self.clear_commitment):
            raise ValueError("Challenge and commitment not equal in length")
        witness = self.clear_statement.witness
        return [
            commit.witness * (witness ** b)
            for commit, b in zip(self.clear_commitment, challenge)
        ]


class TallyVerifier(Verifier):
    """Interactive verifier. Needs only the public key."""

    def draw_challenge(self):
        return [self.stmt.pk.r.random() for _ in range(len(self.commitment))]

    def verify(self, response):
        if self.challenge is None:
            raise ProtocolStateError("Send a challenge before verifying")
        if len(self.commitment) != self.stmt.rounds or not self.stmt._well_formed(
            self.commitment
        ):
            return False
        return self.stmt.verify_responses(self.commitment, self.challenge, response)

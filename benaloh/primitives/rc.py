r"""
Designated-verifier proof of knowledge of the residue class of a residue.

.. math::

    PK\{ (c, x): w = y^c x^r \}

* Statement: :math:`w = y^c x^r`, the prover knows :math:`c` (and :math:`x`).
* Commitment: a fresh :math:`w' = y^{c'} x'^r`.
* Challenge: :math:`b \in \mathbb{Z}_r`.
* Response: :math:`s = c' + b c \mod r`.
* Verification: :math:`w^b w' y^{-s}` is an :math:`r`-th residue.

Deciding :math:`r`-th residuosity requires :math:`\phi`, so only the holder of the secret key can
verify. A prover who does not know :math:`c` passes for at most one challenge out of :math:`r`.
"""

import attr

from benaloh.base import Prover, Verifier, build_fiat_shamir_challenge
from benaloh.exceptions import ProtocolStateError
from benaloh.residues import ClearResidue, OpaqueResidue, ResidueClass, rth_root


@attr.s
class ResidueClassNIZK:
    """
    Non-interactive transcript. The challenge is the hash of the statement and the commitment.
    """

    commitment = attr.ib()
    challenge = attr.ib()
    response = attr.ib()


def check_response(statement, commitment, challenge, response, keypair):
    """
    Check that :math:`w^b w' y^{-s}` is an :math:`r`-th residue.

    Honest transcripts give :math:`(x^b x')^r`. The candidate must be a unit, since zero is
    trivially an :math:`r`-th power.
    """
    pk = keypair.pk
    candidate = (statement ** challenge) * commitment * (pk.invert_y() ** response)
    if not candidate.is_unit():
        return False
    return rth_root(candidate, pk.r, keypair.sk.phi) is not None


class ResidueClassStmt:
    """
    Proof statement: the prover knows the residue class of ``statement``.

    Example:

    >>> from benaloh.keys import KeyPair
    >>> keypair = KeyPair.keygen(8, 32)
    >>> secret = ClearResidue.random(pk=keypair.pk)
    >>> stmt = ResidueClassStmt(secret.val, keypair.pk)
    >>> nizk = stmt.prove(secret)
    >>> stmt.verify(nizk, keypair)
    True

    Args:
        statement (OpaqueResidue): The public residue.
        pk: Public key.
    """

    def __init__(self, statement, pk):
        if not isinstance(statement, OpaqueResidue):
            raise TypeError("Expected an OpaqueResidue. Got: {}".format(statement))
        self.statement = statement
        self.pk = pk

    def get_prover(self, clear_statement):
        """
        Args:
            clear_statement (ClearResidue): Decomposition of the statement.
        """
        if clear_statement.val != self.statement:
            raise ValueError("The decomposition does not match the statement")
        return ResidueClassProver(self, clear_statement)

    def get_verifier(self, keypair):
        return ResidueClassVerifier(self, keypair)

    def prove(self, clear_statement):
        """
        Generate the transcript of a non-interactive proof using the Fiat-Shamir heuristic.
        """
        prover = self.get_prover(clear_statement)
        commitment = prover.commit()
        challenge = build_fiat_shamir_challenge(
            [self.statement, commitment], 1, self.pk.r
        )[0]
        response = prover.compute_response(challenge)
        return ResidueClassNIZK(
            commitment=commitment, challenge=challenge, response=response
        )

    def verify(self, nizk, keypair):
        """
        Verify a non-interactive proof. Needs the secret key.

        Returns:
            bool: True if verification succeeded, False otherwise, including for malformed
            transcripts.
        """
        if not isinstance(nizk, ResidueClassNIZK):
            return False
        if not isinstance(nizk.commitment, OpaqueResidue) or nizk.commitment.group != self.pk.n:
            return False
        if not self.statement.is_unit() or not nizk.commitment.is_unit():
            return False
        for value in (nizk.challenge, nizk.response):
            if not isinstance(value, ResidueClass) or value.ring != self.pk.r:
                return False

        challenge = build_fiat_shamir_challenge(
            [self.statement, nizk.commitment], 1, self.pk.r
        )[0]
        if challenge != nizk.challenge:
            return False
        return check_response(
            self.statement, nizk.commitment, challenge, nizk.response, keypair
        )


class ResidueClassProver(Prover):
    """The prover, who knows the decomposition of the statement."""

    def __init__(self, stmt, clear_statement):
        super().__init__(stmt)
        self.clear_statement = clear_statement
        self.clear_commitment = None

    def commit(self):
        """
        Draw a fresh random residue and return its opaque value.

        The transcript never reveals the class of the commitment.
        """
        self.clear_commitment = ClearResidue.random(pk=self.stmt.pk)
        return self.clear_commitment.val

    def compute_response(self, challenge):
        """
        Compute :math:`c' + b c`.
        """
        if self.clear_commitment is None:
            raise ProtocolStateError("Commit before responding")
        return self.clear_commitment.rc + challenge * self.clear_statement.rc


class ResidueClassVerifier(Verifier):
    """
    The verifier, who holds the secret key.

    Args:
        stmt: Proof statement.
        keypair: Key pair, needed for the residuosity test.
    """

    def __init__(self, stmt, keypair):
        super().__init__(stmt)
        self.keypair = keypair

    def draw_challenge(self):
        """A uniformly random element of :math:`\\mathbb{Z}_r`."""
        return self.stmt.pk.r.random()

    def verify(self, response):
        if self.challenge is None:
            raise ProtocolStateError("Send a challenge before verifying")
        if not isinstance(response, ResidueClass) or response.ring != self.stmt.pk.r:
            return False
        commitment = self.commitment
        if not isinstance(commitment, OpaqueResidue) or commitment.group != self.stmt.pk.n:
            return False
        if not self.stmt.statement.is_unit() or not commitment.is_unit():
            return False
        return check_response(
            self.stmt.statement, self.commitment, self.challenge, response, self.keypair
        )

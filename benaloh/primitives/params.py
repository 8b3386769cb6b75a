"""
Challenge of the validity of the public parameters :math:`(r, n, y)`.

1. The voter draws residues of random classes it knows.
2. For each, the voter proves knowledge of the class (non-interactive
   :py:class:`benaloh.primitives.rc.ResidueClassStmt`).
3. The authority verifies the proofs, and refuses to answer if any fails.
4. The authority decomposes the residues and returns their classes.
5. The voter checks the returned classes against its own.

If the parameters were not perfectly consonant, decomposition would be ambiguous and the authority
would fail to recover the classes.
"""

import logging

import attr

from benaloh import consts
from benaloh.exceptions import DecompositionError, ProtocolAbortError
from benaloh.primitives.rc import ResidueClassStmt
from benaloh.residues import ClearResidue, OpaqueResidue


logger = logging.getLogger(__name__)


@attr.s
class OpaqueChallenge:
    """
    The authority's copy of the challenge: the residues and the knowledge proofs, no answers.
    """

    challenges = attr.ib()
    proofs = attr.ib()

    def verify_proofs(self, keypair):
        """
        Returns:
            bool: True iff there is one valid proof per challenge.
        """
        if len(self.challenges) != len(self.proofs):
            return False
        for challenge, proof in zip(self.challenges, self.proofs):
            if not isinstance(challenge, OpaqueResidue) or challenge.group != keypair.pk.n:
                return False
            if not ResidueClassStmt(challenge, keypair.pk).verify(proof, keypair):
                return False
        return True


class ClearChallenge:
    """
    The voter's copy of the challenge, answers included.

    Args:
        answers: The voter's clear residues.
        proofs: One knowledge proof per residue.
    """

    def __init__(self, answers, proofs):
        self.answers = answers
        self.proofs = proofs

    @classmethod
    def generate(cls, pk, confidence=consts.CONSONANCE_CONFIDENCE):
        """
        Draw ``confidence`` residues of random classes and prove knowledge of each class.
        """
        answers = [ClearResidue.random(pk=pk) for _ in range(confidence)]
        proofs = [ResidueClassStmt(answer.val, pk).prove(answer) for answer in answers]
        return cls(answers, proofs)

    @property
    def challenges(self):
        return [answer.val for answer in self.answers]

    def obscure(self):
        """What is sent to the authority."""
        return OpaqueChallenge(challenges=self.challenges, proofs=list(self.proofs))

    def verify(self, response):
        """
        Check the authority's answers.

        Returns:
            bool: True iff every returned class is right.

        Raises:
            ProtocolAbortError: If the authority refused to answer.
        """
        if response.refused:
            raise ProtocolAbortError("The authority rejected the knowledge proofs")
        if len(response.classes) != len(self.answers):
            return False
        return all(
            returned == answer.rc
            for returned, answer in zip(response.classes, self.answers)
        )


@attr.s
class AuthorityResponse:
    """
    The authority's answers. ``classes`` is None when the authority refused to answer.
    """

    classes = attr.ib(default=None)

    @property
    def refused(self):
        return self.classes is None

    @classmethod
    def respond(cls, challenge, keypair):
        """
        Verify the voter's proofs, then decompose every challenge residue.

        Args:
            challenge (OpaqueChallenge): What the voter sent.
            keypair: Key pair.
        """
        if not challenge.verify_proofs(keypair):
            logger.warning("Refusing to answer a challenge with invalid knowledge proofs")
            return cls(classes=None)

        classes = [
            ClearResidue.decompose(value, keypair).rc for value in challenge.challenges
        ]
        return cls(classes=classes)


def run_consonance_challenge(keypair, rounds=1, confidence=consts.CONSONANCE_CONFIDENCE):
    """
    Play the voter and the authority against each other.

    Returns:
        bool: True iff the authority answered correctly in every round.

    Raises:
        ProtocolAbortError: If the authority refused to answer.
    """
    for i in range(rounds):
        voter_challenge = ClearChallenge.generate(keypair.pk, confidence)
        try:
            response = AuthorityResponse.respond(voter_challenge.obscure(), keypair)
        except DecompositionError:
            logger.warning("Round %d: the authority could not decompose a challenge", i)
            return False
        if not voter_challenge.verify(response):
            logger.warning("Round %d: the authority returned wrong classes", i)
            return False
    return True

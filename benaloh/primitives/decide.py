"""
Single-round proof that the authority can decide residue classes.

The voter draws a residue whose class it knows and sends the opaque value. The authority
decomposes it with the secret key and answers with the class. The voter accepts if the answer is
right. Before answering, the authority should make the voter prove knowledge of the class (see
:py:mod:`benaloh.primitives.rc`), or it becomes a decryption oracle.
"""

from benaloh.residues import ClearResidue, OpaqueResidue, ResidueClass


class DecisionChallenge:
    """
    The voter's side: a residue of known class.

    Args:
        challenge (ClearResidue): The residue.
    """

    def __init__(self, challenge):
        self.challenge = challenge

    @classmethod
    def generate(cls, pk):
        return cls(ClearResidue.random(pk=pk))

    @property
    def value(self):
        """What is sent to the authority."""
        return self.challenge.val

    def verify(self, answer):
        """True iff the answer is the class of the challenge."""
        if not isinstance(answer, ResidueClass):
            return False
        return answer == self.challenge.rc


def decide(value, keypair):
    """
    The authority's side: decompose the value and return its class.

    Args:
        value (OpaqueResidue): Residue sent by the voter.
        keypair: Key pair.
    """
    if not isinstance(value, OpaqueResidue):
        value = keypair.pk.n.element(value)
    return ClearResidue.decompose(value, keypair).rc

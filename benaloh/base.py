"""
Common classes, including subclassable basic provers and verifiers, and the Fiat-Shamir
challenge derivation shared by the non-interactive proofs.
"""

import abc
from hashlib import sha3_256

from benaloh.residues import OpaqueResidue, ResidueClass


def encode_transcript_elem(elem):
    """
    Byte encoding of a transcript element.

    Residues are fixed-width big-endian integers, so that the encoding is unambiguous.
    """
    if isinstance(elem, (OpaqueResidue, ResidueClass)):
        return elem.to_bytes()
    elif isinstance(elem, bytes):
        return elem
    elif isinstance(elem, str):
        return elem.encode()
    raise TypeError("Cannot hash transcript element: {}".format(elem))


def hash_transcript(*elems):
    """
    SHA3-256 of the concatenated encodings of the transcript elements.
    """
    hasher = sha3_256()
    for elem in elems:
        hasher.update(encode_transcript_elem(elem))
    return hasher.digest()


def _digest_stream(seed):
    block = seed
    while True:
        yield block
        block = sha3_256(block).digest()


def build_fiat_shamir_challenge(elems, count, ring=None):
    """
    Generate a Fiat-Shamir challenge from the public transcript.

    The transcript is hashed once. The digest is then stretched into a stream of blocks by
    re-hashing, which is only needed when more output than one digest is asked for.

    >>> bits = build_fiat_shamir_challenge([b"commitment"], 8)
    >>> len(bits), all(isinstance(b, bool) for b in bits)
    (8, True)

    Args:
        elems: Ordered transcript elements (residues or bytes).
        count: Number of challenge values.
        ring (RingModulus): If given, produce residue classes instead of booleans.

    Returns:
        list: ``count`` booleans, read most-significant bit first in each byte, or ``count``
        :py:class:`ResidueClass` values, one block each reduced modulo :math:`r`.
    """
    stream = _digest_stream(hash_transcript(*elems))

    if ring is not None:
        return [ResidueClass.from_bytes(next(stream), ring) for _ in range(count)]

    challenge = []
    while len(challenge) < count:
        for byte in next(stream):
            for j in range(8):
                challenge.append((byte & (0x80 >> j)) != 0)
    return challenge[:count]


class Prover(metaclass=abc.ABCMeta):
    """
    Abstract interface representing a prover in an interactive proof.

    Args:
        stmt: The proof statement.
    """

    def __init__(self, stmt):
        self.stmt = stmt

    @abc.abstractmethod
    def commit(self):
        """
        Draw fresh randomness and return the public commitment.
        """
        pass

    @abc.abstractmethod
    def compute_response(self, challenge):
        """
        Answer the verifier's challenge using the last commitment.
        """
        pass


class Verifier(metaclass=abc.ABCMeta):
    """
    An abstract interface representing a verifier in an interactive proof.

    Args:
        stmt: The proof statement.
    """

    def __init__(self, stmt):
        self.stmt = stmt
        self.commitment = None
        self.challenge = None

    @abc.abstractmethod
    def draw_challenge(self):
        """
        Draw a random challenge.
        """
        pass

    def send_challenge(self, commitment):
        """
        Store the received commitment and generate a challenge.

        Args:
            commitment: The prover's commitment.
        """
        self.commitment = commitment
        self.challenge = self.draw_challenge()
        return self.challenge

    @abc.abstractmethod
    def verify(self, response):
        """
        Verify the response against the stored commitment and challenge.

        Returns:
            bool: True if verification succeeded, False otherwise.
        """
        pass

"""
Common exception classes.
"""


class ModulusMismatchError(Exception):
    """Operands live under different moduli or public keys."""


class ResidueArithmeticError(Exception):
    """Arithmetic on a residue is undefined, e.g. inverting a non-unit."""


class ConsonanceError(Exception):
    """Key material is not perfectly consonant."""


class DecompositionError(Exception):
    """A value could not be split into a residue class and a witness."""


class KeyGenerationError(Exception):
    """Could not produce a perfectly consonant key pair within the attempt budget."""


class CapsuleMismatchError(Exception):
    """No element of a capsule shares the residue class of the statement."""


class ProtocolStateError(Exception):
    """A protocol step was called out of order."""


class ProtocolAbortError(Exception):
    """The counterparty refused to continue the protocol."""


class InvalidTallyError(Exception):
    """The claimed tally does not match the product of the ballots."""

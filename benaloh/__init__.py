__version__ = "0.1.0"
__title__ = "benaloh"
__author__ = "Benaloh voting contributors"
__license__ = "MIT"
__description__ = "Benaloh's residue cryptosystem with zero-knowledge proofs for verifiable voting."
__copyright__ = "2023, Benaloh voting contributors"


from benaloh.residues import (
    ClearResidue,
    GroupModulus,
    OpaqueResidue,
    ResidueClass,
    RingModulus,
    discrete_log,
    rth_root,
)
from benaloh.keys import KeyPair, PublicKey, SecretKey, keygen

"""
A voter checks that the public parameters (r, n, y) are perfectly consonant by asking the
authority to decompose residues of classes only the voter knows.
"""

from benaloh import KeyPair
from benaloh.primitives.params import AuthorityResponse, ClearChallenge

keypair = KeyPair.keygen(ring_bits=12, group_bits=48)

# The voter prepares a challenge with knowledge proofs.
challenge = ClearChallenge.generate(keypair.pk, confidence=4)

# The authority checks the proofs and answers with the classes.
response = AuthorityResponse.respond(challenge.obscure(), keypair)
assert not response.refused

# The voter checks the answers.
assert challenge.verify(response)

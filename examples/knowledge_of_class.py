"""
Designated-verifier proof of knowledge of a residue class:
PK{ (c, x): w = y^c * x^r }

Only the holder of the secret key can verify, since it needs to decide r-th residuosity.
"""

from benaloh import KeyPair, ClearResidue
from benaloh.primitives.rc import ResidueClassStmt

# Small parameters keep the example fast.
keypair = KeyPair.keygen(ring_bits=12, group_bits=48)

# The prover picks a residue of a random class.
secret = ClearResidue.random(pk=keypair.pk)

# Set up the proof statement on the public value.
stmt = ResidueClassStmt(secret.val, keypair.pk)

# Simulate the prover and the verifier interacting.
prover = stmt.get_prover(secret)
verifier = stmt.get_verifier(keypair)

commitment = prover.commit()
challenge = verifier.send_challenge(commitment)
response = prover.compute_response(challenge)
assert verifier.verify(response)

# Non-interactive version.
nizk = stmt.prove(secret)
assert stmt.verify(nizk, keypair)

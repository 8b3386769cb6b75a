"""
A yes/no election:

1. The authority publishes (r, n, y). A voter challenges their consonance.
2. Voters cast encrypted ballots together with ballot-validity proofs.
3. Ballots with valid proofs are multiplied. The authority announces the total and proves that
   the product decrypts to it.
"""

import random

from benaloh import KeyPair, ClearResidue
from benaloh.primitives.ballot import BallotStmt, zero_or_one
from benaloh.primitives.params import run_consonance_challenge
from benaloh.primitives.tally import TallyStmt

keypair = KeyPair.keygen(ring_bits=16, group_bits=64)
pk = keypair.pk
classes = zero_or_one(pk.r)

# Parameter validation.
assert run_consonance_challenge(keypair, rounds=3, confidence=4)

# Voting. Each ballot comes with a validity proof.
votes = [random.randint(0, 1) for _ in range(10)]
cast = []
for vote in votes:
    ballot = ClearResidue.random(vote, pk)
    proof = BallotStmt(ballot.val, classes, pk).prove(ballot)
    cast.append((ballot.val, proof))

# Counting. Only ballots with valid proofs are counted.
accepted = [ballot for ballot, proof in cast if BallotStmt(ballot, classes, pk).verify(proof)]
assert len(accepted) == len(votes)

stmt = TallyStmt.from_ballots(accepted, sum(votes), pk)
tally_proof = stmt.prove(keypair)

# Anyone can check the announced total with the public key only.
assert TallyStmt.from_ballots(accepted, sum(votes), pk).verify(tally_proof)

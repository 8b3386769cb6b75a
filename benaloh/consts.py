"""
Default parameters.
"""

# Output size of SHA3-256. The ballot proof draws one challenge bit per round from it.
HASH_BITS = 256

# Number of cut-and-choose rounds in a ballot-validity proof.
CONFIDENCE = HASH_BITS

# The ring must hold every possible tally, the group modulus carries the security.
DEFAULT_RING_BITS = 16
DEFAULT_GROUP_BITS = 64
DEFAULT_SAFE_PRIME = False

# Key generation retries before giving up.
KEYGEN_MAX_ATTEMPTS = 16
PRIME_SEARCH_MAX_CANDIDATES = 1 << 20

# Rounds in a tally proof. Each round has soundness error 1/r.
TALLY_ROUNDS = 8

# Challenge ciphertexts sent per consonance round.
CONSONANCE_CONFIDENCE = 16

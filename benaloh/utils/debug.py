"""
Utils that can be useful for debugging.
"""


class SigmaProtocol:
    """
    Sigma-protocol runner.

    Args:
        verifier: Verifier object
        prover: Prover object
    """

    def __init__(self, verifier, prover):
        self.verifier = verifier
        self.prover = prover

    def verify(self, verbose=True):
        """Run one commit, challenge, response exchange and verify it."""

        # Funky names.
        victor = self.verifier
        peggy = self.prover

        commitment = peggy.commit()
        challenge = victor.send_challenge(commitment)
        response = peggy.compute_response(challenge)
        result = victor.verify(response)

        if verbose:
            if result:
                print("Verified for {0}".format(victor.__class__.__name__))
            else:
                print("Not verified for {0}".format(victor.__class__.__name__))

        return result

    def run(self, rounds, verbose=False):
        """
        Repeat the exchange with fresh commitments.

        Returns:
            bool: True if every round verified.
        """
        return all(self.verify(verbose=verbose) for _ in range(rounds))

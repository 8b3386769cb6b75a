import pytest

from benaloh.base import build_fiat_shamir_challenge
from benaloh.exceptions import ProtocolAbortError
from benaloh.primitives.params import (
    AuthorityResponse,
    ClearChallenge,
    OpaqueChallenge,
    run_consonance_challenge,
)
from benaloh.primitives.rc import ResidueClassNIZK
from benaloh.residues import ClearResidue


CONFIDENCE = 4


def test_challenge_proofs_verify(keypair):
    challenge = ClearChallenge.generate(keypair.pk, CONFIDENCE)
    opaque = challenge.obscure()
    assert len(opaque.challenges) == CONFIDENCE
    assert opaque.verify_proofs(keypair)


def test_authority_answers(keypair):
    challenge = ClearChallenge.generate(keypair.pk, CONFIDENCE)
    response = AuthorityResponse.respond(challenge.obscure(), keypair)
    assert not response.refused
    assert challenge.verify(response)


def test_consonance_challenge_rounds(keypair):
    assert run_consonance_challenge(keypair, rounds=10, confidence=CONFIDENCE)


def test_wrong_answers_rejected(keypair):
    challenge = ClearChallenge.generate(keypair.pk, CONFIDENCE)
    response = AuthorityResponse.respond(challenge.obscure(), keypair)
    one = keypair.pk.r.one()
    wrong = AuthorityResponse([rc + one for rc in response.classes])
    assert not challenge.verify(wrong)
    assert not challenge.verify(AuthorityResponse(response.classes[:-1]))


def test_refusal_aborts(keypair):
    challenge = ClearChallenge.generate(keypair.pk, CONFIDENCE)
    with pytest.raises(ProtocolAbortError):
        challenge.verify(AuthorityResponse())


def test_authority_refuses_bad_proofs(keypair):
    challenge = ClearChallenge.generate(keypair.pk, CONFIDENCE)
    opaque = challenge.obscure()
    proof = opaque.proofs[0]
    opaque.proofs[0] = ResidueClassNIZK(
        proof.commitment, proof.challenge, proof.response + keypair.pk.r.one()
    )
    assert not opaque.verify_proofs(keypair)
    response = AuthorityResponse.respond(opaque, keypair)
    assert response.refused
    with pytest.raises(ProtocolAbortError):
        challenge.verify(response)


def test_authority_refuses_missing_proofs(keypair):
    challenge = ClearChallenge.generate(keypair.pk, CONFIDENCE)
    opaque = OpaqueChallenge(challenges=challenge.challenges, proofs=challenge.proofs[:-1])
    assert AuthorityResponse.respond(opaque, keypair).refused


def test_authority_refuses_mismatched_proofs(keypair):
    """Proofs must be bound to their own challenge."""
    challenge = ClearChallenge.generate(keypair.pk, CONFIDENCE)
    opaque = challenge.obscure()
    opaque.proofs.reverse()
    assert AuthorityResponse.respond(opaque, keypair).refused


def test_authority_refuses_zero_commitment_proof(keypair):
    """The authority must not decompose a ciphertext whose class the sender does not know."""
    pk = keypair.pk
    victim = ClearResidue.random(pk=pk)
    zero = pk.n.element(0)
    challenge = build_fiat_shamir_challenge([victim.val, zero], 1, pk.r)[0]
    forged = ResidueClassNIZK(zero, challenge, pk.r.zero())

    opaque = OpaqueChallenge(challenges=[victim.val], proofs=[forged])
    assert not opaque.verify_proofs(keypair)
    assert AuthorityResponse.respond(opaque, keypair).refused

import pytest

from benaloh.exceptions import CapsuleMismatchError
from benaloh.primitives.ballot import (
    BallotProof,
    BallotStmt,
    ClearCapsule,
    ConsumeCapsule,
    OpaqueCapsule,
    OpenCapsule,
    zero_or_one,
)
from benaloh.residues import ClearResidue
from benaloh.utils.debug import SigmaProtocol


SMALL_CONFIDENCE = 32


@pytest.fixture
def classes(keypair):
    return zero_or_one(keypair.pk.r)


def test_consume_capsule(keypair):
    pk = keypair.pk
    rc = pk.r.random()
    statement = ClearResidue.random(rc, pk)
    element = ClearResidue.random(rc, pk)
    capsule = ClearCapsule([element])
    quotient = capsule.consume(statement)
    assert quotient.is_exact_residue()
    assert statement.val * (quotient.witness ** pk.r.modulus) == element.val


def test_consume_capsule_without_match(keypair, classes):
    pk = keypair.pk
    statement = ClearResidue.random(2, pk)
    capsule = ClearCapsule.generate(classes, pk)
    with pytest.raises(CapsuleMismatchError):
        capsule.consume(statement)


def test_capsule_contains_every_class(keypair, classes):
    capsule = ClearCapsule.generate(classes, keypair.pk)
    assert sorted(int(e.rc) for e in capsule.elements) == [0, 1]
    assert capsule.obscure().elements == [e.val for e in capsule.elements]


@pytest.mark.parametrize("vote", [0, 1])
def test_ballot_non_interactive(keypair, classes, vote):
    ballot = ClearResidue.random(vote, keypair.pk)
    stmt = BallotStmt(ballot.val, classes, keypair.pk)
    proof = stmt.prove(ballot)
    assert len(proof.commitment) == 256
    assert stmt.verify(proof)


def test_ballot_other_classes(keypair):
    pk = keypair.pk
    classes = [pk.r.element(c) for c in (3, 5, 7)]
    ballot = ClearResidue.random(5, pk)
    stmt = BallotStmt(ballot.val, classes, pk, confidence=SMALL_CONFIDENCE)
    assert stmt.verify(stmt.prove(ballot))


def test_ballot_interactive(keypair, classes):
    ballot = ClearResidue.random(1, keypair.pk)
    stmt = BallotStmt(ballot.val, classes, keypair.pk, confidence=SMALL_CONFIDENCE)
    protocol = SigmaProtocol(stmt.get_verifier(), stmt.get_prover(ballot))
    assert protocol.verify()


def test_low_confidence_warns(keypair, classes):
    ballot = ClearResidue.random(1, keypair.pk)
    with pytest.warns(UserWarning):
        BallotStmt(ballot.val, classes, keypair.pk, confidence=8)


def _cheating_proof(stmt, ballot, cheat_class):
    """
    Commit to capsules that contain the ballot's class in place of an allowed one, so that
    consumed capsules pass and opened ones do not.
    """
    pk = stmt.pk
    forged_classes = list(stmt.classes)
    forged_classes[0] = cheat_class
    capsules = [ClearCapsule.generate(forged_classes, pk) for _ in range(stmt.confidence)]
    commitment = [capsule.obscure() for capsule in capsules]
    challenge = stmt.build_challenge(commitment)
    response = [
        OpenCapsule(capsule) if open_capsule else ConsumeCapsule(capsule.consume(ballot))
        for capsule, open_capsule in zip(capsules, challenge)
    ]
    return BallotProof(commitment, challenge, response)


def test_ballot_soundness_forged_capsules(keypair, classes):
    pk = keypair.pk
    for _ in range(100):
        ballot = ClearResidue.random(2, pk)
        stmt = BallotStmt(ballot.val, classes, pk, confidence=SMALL_CONFIDENCE)
        assert not stmt.verify(_cheating_proof(stmt, ballot, ballot.rc))


def test_ballot_soundness_honest_capsules(keypair, classes):
    """An invalid ballot with honest capsules cannot consume any capsule."""
    pk = keypair.pk
    for _ in range(100):
        ballot = ClearResidue.random(2, pk)
        stmt = BallotStmt(ballot.val, classes, pk, confidence=SMALL_CONFIDENCE)
        try:
            proof = stmt.prove(ballot)
        except CapsuleMismatchError:
            continue
        assert not stmt.verify(proof)


def test_ballot_wrong_statement(keypair, classes):
    pk = keypair.pk
    ballot = ClearResidue.random(1, pk)
    proof = BallotStmt(ballot.val, classes, pk).prove(ballot)
    other = ClearResidue.random(1, pk)
    assert not BallotStmt(other.val, classes, pk).verify(proof)


def test_ballot_tampered_challenge(keypair, classes):
    pk = keypair.pk
    ballot = ClearResidue.random(0, pk)
    stmt = BallotStmt(ballot.val, classes, pk)
    proof = stmt.prove(ballot)
    flipped = [not bit for bit in proof.challenge]
    assert not stmt.verify(BallotProof(proof.commitment, flipped, proof.response))


def test_ballot_swapped_response_variant(keypair, classes):
    pk = keypair.pk
    ballot = ClearResidue.random(0, pk)
    stmt = BallotStmt(ballot.val, classes, pk)
    proof = stmt.prove(ballot)
    index = proof.challenge.index(True)
    response = list(proof.response)
    response[index] = ConsumeCapsule(ClearResidue.random(0, pk))
    assert not stmt.verify(BallotProof(proof.commitment, proof.challenge, response))


def test_ballot_malformed_transcript(keypair, classes):
    pk = keypair.pk
    ballot = ClearResidue.random(0, pk)
    stmt = BallotStmt(ballot.val, classes, pk)
    proof = stmt.prove(ballot)
    assert not stmt.verify(BallotProof(proof.commitment[:-1], proof.challenge, proof.response))
    assert not stmt.verify(BallotProof(proof.commitment, proof.challenge, proof.response[:-1]))
    assert not stmt.verify(BallotProof(None, proof.challenge, proof.response))


def test_ballot_verifier_requires_full_confidence(keypair, classes):
    pk = keypair.pk
    ballot = ClearResidue.random(1, pk)
    weak = BallotStmt(ballot.val, classes, pk, confidence=SMALL_CONFIDENCE)
    proof = weak.prove(ballot)
    assert weak.verify(proof)
    assert not BallotStmt(ballot.val, classes, pk).verify(proof)


def _zero_capsule_proof(stmt):
    """
    Capsules of zeros, opened with zero witnesses and consumed with a zero quotient. Zero
    satisfies every decomposition equation, so only the unit checks stop this.
    """
    pk = stmt.pk
    zero = pk.n.element(0)
    commitment = [OpaqueCapsule([zero] * len(stmt.classes)) for _ in range(stmt.confidence)]
    challenge = stmt.build_challenge(commitment)
    opened = ClearCapsule(
        [ClearResidue(val=zero, rc=rc, witness=zero, ambience=pk) for rc in stmt.classes]
    )
    quotient = ClearResidue(val=zero, rc=pk.r.zero(), witness=zero, ambience=pk)
    response = [
        OpenCapsule(opened) if open_capsule else ConsumeCapsule(quotient)
        for open_capsule in challenge
    ]
    return BallotProof(commitment, challenge, response)


def test_ballot_zero_capsules_rejected(keypair, classes):
    pk = keypair.pk
    ballot = ClearResidue.random(5, pk)
    stmt = BallotStmt(ballot.val, classes, pk)
    assert not stmt.verify(_zero_capsule_proof(stmt))


def test_ballot_zero_capsules_rejected_interactive(keypair, classes):
    pk = keypair.pk
    ballot = ClearResidue.random(5, pk)
    stmt = BallotStmt(ballot.val, classes, pk, confidence=SMALL_CONFIDENCE)
    forged = _zero_capsule_proof(stmt)

    verifier = stmt.get_verifier()
    challenge = verifier.send_challenge(forged.commitment)
    zero = pk.n.element(0)
    opened = ClearCapsule(
        [ClearResidue(val=zero, rc=rc, witness=zero, ambience=pk) for rc in stmt.classes]
    )
    quotient = ClearResidue(val=zero, rc=pk.r.zero(), witness=zero, ambience=pk)
    response = [OpenCapsule(opened) if bit else ConsumeCapsule(quotient) for bit in challenge]
    assert not verifier.verify(response)


def test_ballot_zero_quotient_rejected(keypair, classes):
    pk = keypair.pk
    zero = pk.n.element(0)
    ballot = ClearResidue.random(5, pk)
    stmt = BallotStmt(ballot.val, classes, pk)
    quotient = ClearResidue(val=zero, rc=pk.r.zero(), witness=zero, ambience=pk)
    assert not stmt.verify_response(OpaqueCapsule([zero, zero]), False, ConsumeCapsule(quotient))


def test_ballot_zero_opening_rejected(keypair, classes):
    pk = keypair.pk
    zero = pk.n.element(0)
    ballot = ClearResidue.random(1, pk)
    stmt = BallotStmt(ballot.val, classes, pk)
    opened = ClearCapsule(
        [ClearResidue(val=zero, rc=rc, witness=zero, ambience=pk) for rc in stmt.classes]
    )
    assert not stmt.verify_response(OpaqueCapsule([zero, zero]), True, OpenCapsule(opened))


def test_ballot_zero_ballot_rejected(keypair, classes):
    pk = keypair.pk
    stmt = BallotStmt(pk.n.element(0), classes, pk, confidence=SMALL_CONFIDENCE)
    assert not stmt.verify(_zero_capsule_proof(stmt))

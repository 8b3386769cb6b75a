from hashlib import sha3_256

from benaloh.base import build_fiat_shamir_challenge, hash_transcript
from benaloh.residues import GroupModulus, RingModulus


def test_bits_are_digest_bits_msb_first():
    digest = sha3_256(b"abc").digest()
    bits = build_fiat_shamir_challenge([b"abc"], 256)
    assert len(bits) == 256
    for i, byte in enumerate(digest):
        value = 0
        for bit in bits[8 * i : 8 * i + 8]:
            value = (value << 1) | int(bit)
        assert value == byte


def test_short_challenge_is_prefix():
    assert build_fiat_shamir_challenge([b"abc"], 8) == build_fiat_shamir_challenge(
        [b"abc"], 256
    )[:8]


def test_long_challenge():
    bits = build_fiat_shamir_challenge([b"abc"], 600)
    assert len(bits) == 600
    assert bits[:256] == build_fiat_shamir_challenge([b"abc"], 256)


def test_ring_challenge():
    ring = RingModulus(65521)
    challenge = build_fiat_shamir_challenge([b"abc"], 3, ring)
    assert len(challenge) == 3
    assert challenge[0] == ring.element(int.from_bytes(sha3_256(b"abc").digest(), "big"))
    assert all(c.ring == ring for c in challenge)


def test_transcript_encoding_is_fixed_width():
    group = GroupModulus(2 ** 64 + 1)
    small = group.element(1)
    assert hash_transcript(small) == sha3_256(b"\x00" * 8 + b"\x01").digest()


def test_challenge_depends_on_transcript():
    group = GroupModulus(2 ** 64 + 1)
    a = build_fiat_shamir_challenge([group.element(2)], 64)
    b = build_fiat_shamir_challenge([group.element(3)], 64)
    assert a != b

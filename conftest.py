import pytest

from benaloh.keys import KeyPair


RING_BITS = 16
GROUP_BITS = 64


@pytest.fixture(scope="module")
def keypair():
    return KeyPair.keygen(RING_BITS, GROUP_BITS, safe_prime=False)


@pytest.fixture
def pk(keypair):
    return keypair.pk

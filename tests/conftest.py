"""
Shared pytest fixtures for the Masslet test suite.
"""

import pytest

from masslet_core.errors import AllEndpointsFailedError, NetworkError, OperationCancelledError
from masslet_core.keystore import PassphraseCipher
from masslet_core.wallet import Wallet, derive_keypair

# BIP-39 test vector phrases; every derived value below is pinned.
ABANDON_MNEMONIC = (
    "abandon abandon abandon abandon abandon abandon "
    "abandon abandon abandon abandon abandon about"
)
LEGAL_MNEMONIC = "legal winner thank year wave sausage worth useful legal winner thank yellow"

ABANDON_SEED_HEX = (
    "5eb00bbddcf069084889a8ab9155568165f5c453ccb85e70811aaed6f6da5fc1"
    "9a5ac40b389cd370d086206dec8aa6c43daea6690f20ad3d8d48b2d2ce9e38e4"
)
ABANDON_PUBLIC_HEX = "c5785e1865b708938aff8161d573006496663b1aa10834e396dc566869a2c66a"
ABANDON_PRIVATE_HEX = (
    "5eb00bbddcf069084889a8ab9155568165f5c453ccb85e70811aaed6f6da5fc1"
    "c5785e1865b708938aff8161d573006496663b1aa10834e396dc566869a2c66a"
)
ABANDON_ADDRESS = "AU12oQPzbLwjkCHHh8gqN6nmPXSA9h3KocX6AHKt4xz1ahorDYUzA"

LEGAL_PUBLIC_HEX = "c6f2ac5598970c79633714d3eb5c34d7bfc3e92da58c7354b37996d9a4af3ab2"
LEGAL_HASH_HEX = "b982c704c853a6497721ad46bd15bbb68bb46123603e380b1ffe26ccd3d5abd8"
LEGAL_ADDRESS = "AU12QhdHjNci9JqfdJJb3HagNzUSsjFTtLWEz2PKSUb65XJfHamAV"

BUILDNET_CHAIN_ID = 77658366


@pytest.fixture
def sender_keypair():
    """Deterministic key-pair of the abandon phrase."""
    return derive_keypair(ABANDON_MNEMONIC)


@pytest.fixture
def sender_wallet():
    return Wallet.from_mnemonic(ABANDON_MNEMONIC)


@pytest.fixture
def recipient_address():
    return LEGAL_ADDRESS


@pytest.fixture
def fast_cipher():
    """Low iteration count so keystore tests stay quick."""
    return PassphraseCipher(iterations=1_000)


class FakeRpc:
    """Scripted stand-in for ``RpcClient``.

    *replies* maps a method name to its result, to an exception instance
    to raise, or to a callable taking the params.  Unknown methods behave
    like a call on which every endpoint failed.
    """

    def __init__(self, replies=None):
        self.replies = dict(replies or {})
        self.calls = []
        self.closed = False

    async def call(self, method, params=None, cancel=None):
        self.calls.append((method, params))
        if cancel is not None and cancel.cancelled:
            raise OperationCancelledError(f"{method} cancelled")
        if method not in self.replies:
            raise AllEndpointsFailedError(method, [NetworkError("http://fake-node", "connection refused")])
        reply = self.replies[method]
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(params)
        return reply

    def methods(self):
        return [m for m, _ in self.calls]

    async def close(self):
        self.closed = True


@pytest.fixture
def fake_rpc():
    return FakeRpc()

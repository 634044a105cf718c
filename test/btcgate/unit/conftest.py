import random
import pytest
import threading
from decimal import Decimal

import btcgate.upstream as upstream


GENESIS_BLOCK_HASH = "000000000019d6689c085ae165831e934ff763ae46a2a6c172b3f1b60a8ce26f"

BLOCK = {
    "hash": GENESIS_BLOCK_HASH,
    "confirmations": 700001,
    "size": 285,
    "height": 0,
    "version": 1,
    "merkleroot": "4a5e1e4baab89f3a32518a88c31bc87f618f76673e2cc77ab2127b7afdeda33b",
    "tx": ["4a5e1e4baab89f3a32518a88c31bc87f618f76673e2cc77ab2127b7afdeda33b"],
    "time": 1231006505,
    "nonce": 2083236893,
    "bits": "1d00ffff",
    "difficulty": Decimal("1"),
    "nextblockhash": "00000000839a8e6886ab5951d76f411475428afc90947ee320161bbf18eb6048",
}

BLOCKCHAIN_INFO = {
    "chain": "main",
    "blocks": 700000,
    "headers": 700000,
    "bestblockhash": "0000000000000000000590fc0f3eba193a278534220b2b37e9849e1a770ca959",
    "difficulty": Decimal("18415156832118.24"),
    "verificationprogress": Decimal("0.9999969358578825"),
    "initialblockdownload": False,
    "pruned": False,
}


def get_random_value_hex(nbytes):
    pseudo_random_value = random.getrandbits(8 * nbytes)
    prv_hex = "{:x}".format(pseudo_random_value)
    return prv_hex.zfill(2 * nbytes)


class FakeNode:
    """
    Stands for ``bitcoind``. Answers rpc calls from ``results`` and records every call and every proxy built.

    A result can be a value, an exception (raised when the method is called) or a function (called with the params).
    """

    def __init__(self):
        self.results = {}
        self.calls = []
        self.proxies = []
        self.lock = threading.Lock()

    def answer(self, method, params):
        with self.lock:
            self.calls.append((method, params))

        result = self.results.get(method)
        if isinstance(result, BaseException):
            raise result
        elif callable(result):
            return result(*params)

        return result


@pytest.fixture(scope="session", autouse=True)
def prng_seed():
    random.seed(0)


@pytest.fixture
def node(monkeypatch):
    fake_node = FakeNode()

    class FakeProxy:
        def __init__(self, service_url, timeout=None):
            with fake_node.lock:
                fake_node.proxies.append((service_url, timeout))

        def __getattr__(self, name):
            return lambda *params: fake_node.answer(name, params)

    monkeypatch.setattr(upstream, "AuthServiceProxy", FakeProxy)

    return fake_node


@pytest.fixture
def upstream_client(node):
    return upstream.UpstreamClient("localhost:18443", "user", "passwd", timeout=5)


@pytest.fixture
def uninitialized(monkeypatch):
    # Every test using this fixture starts (and leaves the module) without a process-wide client
    monkeypatch.setattr(upstream, "_client", None)

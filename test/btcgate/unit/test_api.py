import pytest
import threading
from bitcoinrpc.authproxy import JSONRPCException

import common.errors as errors
from common.constants import HTTP_OK, HTTP_BAD_REQUEST, HTTP_BAD_GATEWAY, HTTP_SERVICE_UNAVAILABLE

from btcgate.api import API, serve, get_remote_addr
from btcgate.constants import SECURITY_HEADERS

from test.btcgate.unit.conftest import GENESIS_BLOCK_HASH, BLOCK, BLOCKCHAIN_INFO, get_random_value_hex

get_best_block_hash_endpoint = "/getbestblockhash"
get_block_endpoint = "/getblock"
get_block_count_endpoint = "/getblockcount"
get_blockchain_info_endpoint = "/getblockchaininfo"

ENDPOINTS_AND_METHODS = [
    (get_best_block_hash_endpoint, "getbestblockhash"),
    (get_block_endpoint + "?blockhash=" + GENESIS_BLOCK_HASH, "getblock"),
    (get_block_count_endpoint, "getblockcount"),
    (get_blockchain_info_endpoint, "getblockchaininfo"),
]


@pytest.fixture
def api(upstream_client):
    return API(upstream_client)


@pytest.fixture
def app(api):
    with api.app.app_context():
        yield api.app


@pytest.fixture
def client(app):
    return app.test_client()


def test_api_needs_client():
    with pytest.raises(ValueError):
        API(None)


def test_serve(upstream_client):
    # Without auto_run the Flask app is returned so it can be run by an external WSGI
    app = serve(upstream_client, "localhost:8000")
    assert sorted(r.rule for r in app.url_map.iter_rules() if r.rule != "/static/<path:filename>") == sorted(
        [get_best_block_hash_endpoint, get_block_endpoint, get_block_count_endpoint, get_blockchain_info_endpoint]
    )


def test_get_remote_addr(app):
    with app.test_request_context("/", environ_base={"REMOTE_ADDR": "10.0.0.1"}):
        assert get_remote_addr() == "10.0.0.1"

    # The address given by a reverse proxy takes precedence
    with app.test_request_context("/", headers={"X-Real-IP": "10.0.0.2"}, environ_base={"REMOTE_ADDR": "10.0.0.1"}):
        assert get_remote_addr() == "10.0.0.2"


def test_get_best_block_hash(client, node):
    node.results["getbestblockhash"] = GENESIS_BLOCK_HASH

    r = client.get(get_best_block_hash_endpoint)
    assert r.status_code == HTTP_OK
    assert r.is_json
    assert r.json == GENESIS_BLOCK_HASH
    assert node.calls == [("getbestblockhash", ())]


def test_get_block(client, node):
    node.results["getblock"] = BLOCK

    r = client.get(get_block_endpoint, query_string={"blockhash": GENESIS_BLOCK_HASH})
    assert r.status_code == HTTP_OK
    assert r.json.get("hash") == GENESIS_BLOCK_HASH
    assert r.json.get("height") == BLOCK.get("height")
    assert r.json.get("tx") == BLOCK.get("tx")
    assert r.json.get("difficulty") == 1

    # A single call, with the block hash and verbosity 1 (block metadata and txids)
    assert node.calls == [("getblock", (GENESIS_BLOCK_HASH, 1))]


def test_get_block_canonical_hash(client, node):
    # Upper case hashes are accepted, but sent to bitcoind in the canonical (lower case) form
    block_hash = get_random_value_hex(32)
    node.results["getblock"] = lambda h, verbosity: {"hash": h}

    r = client.get(get_block_endpoint, query_string={"blockhash": block_hash.upper()})
    assert r.status_code == HTTP_OK
    assert r.json.get("hash") == block_hash
    assert node.calls == [("getblock", (block_hash, 1))]


@pytest.mark.parametrize(
    "block_hash, error_code",
    [
        ("zz", errors.BLOCK_HASH_WRONG_FIELD_SIZE),
        ("", errors.BLOCK_HASH_EMPTY_FIELD),
        (GENESIS_BLOCK_HASH[:-2], errors.BLOCK_HASH_WRONG_FIELD_SIZE),
        (GENESIS_BLOCK_HASH + "00", errors.BLOCK_HASH_WRONG_FIELD_SIZE),
        ("z" * 64, errors.BLOCK_HASH_WRONG_FIELD_FORMAT),
        (GENESIS_BLOCK_HASH[:-1] + "g", errors.BLOCK_HASH_WRONG_FIELD_FORMAT),
    ],
)
def test_get_block_wrong_hash(client, node, block_hash, error_code):
    # Wrong hashes are rejected before reaching bitcoind
    r = client.get(get_block_endpoint, query_string={"blockhash": block_hash})
    assert r.status_code == HTTP_BAD_REQUEST
    assert r.json.get("error_code") == error_code
    assert r.json.get("error")
    assert node.calls == []


def test_get_block_no_hash(client, node):
    r = client.get(get_block_endpoint)
    assert r.status_code == HTTP_BAD_REQUEST
    assert r.json.get("error_code") == errors.BLOCK_HASH_EMPTY_FIELD
    assert node.calls == []


def test_get_block_count(client, node):
    node.results["getblockcount"] = 700000

    r = client.get(get_block_count_endpoint)
    assert r.status_code == HTTP_OK
    assert r.get_data(as_text=True) == "700000"
    assert r.mimetype == "text/plain"
    assert node.calls == [("getblockcount", ())]


def test_get_blockchain_info(client, node):
    node.results["getblockchaininfo"] = BLOCKCHAIN_INFO

    r = client.get(get_blockchain_info_endpoint)
    assert r.status_code == HTTP_OK
    assert r.json.get("chain") == "main"
    assert r.json.get("blocks") == 700000
    # Decimals are sent as json numbers
    assert r.json.get("verificationprogress") == float(BLOCKCHAIN_INFO.get("verificationprogress"))
    assert r.json.get("initialblockdownload") is False
    assert node.calls == [("getblockchaininfo", ())]


@pytest.mark.parametrize("endpoint, method", ENDPOINTS_AND_METHODS)
def test_node_error(client, node, endpoint, method):
    # Errors returned by bitcoind are relayed, without retrying
    node.results[method] = JSONRPCException({"code": -28, "message": "Loading block index..."})

    r = client.get(endpoint)
    assert r.status_code == HTTP_BAD_GATEWAY
    assert r.json.get("error") == "Loading block index..."
    assert r.json.get("error_code") == errors.UPSTREAM_NODE_ERROR
    assert r.json.get("rpc_code") == -28
    assert len(node.calls) == 1


@pytest.mark.parametrize("endpoint, method", ENDPOINTS_AND_METHODS)
def test_bitcoind_unreachable(client, node, endpoint, method):
    node.results[method] = ConnectionRefusedError("Connection refused")

    r = client.get(endpoint)
    assert r.status_code == HTTP_SERVICE_UNAVAILABLE
    assert "Connection refused" in r.json.get("error")
    assert r.json.get("error_code") == errors.UPSTREAM_UNREACHABLE
    assert len(node.calls) == 1


@pytest.mark.parametrize("endpoint, method", ENDPOINTS_AND_METHODS)
def test_malformed_response(client, node, endpoint, method):
    # None is not a valid result for any of the routes
    node.results[method] = None

    r = client.get(endpoint)
    assert r.status_code == HTTP_BAD_GATEWAY
    assert r.json.get("error_code") == errors.UPSTREAM_MALFORMED_RESPONSE
    assert len(node.calls) == 1


def test_get_block_not_found(client, node):
    node.results["getblock"] = JSONRPCException({"code": -5, "message": "Block not found"})

    r = client.get(get_block_endpoint, query_string={"blockhash": get_random_value_hex(32)})
    assert r.status_code == HTTP_BAD_GATEWAY
    assert r.json.get("error") == "Block not found"
    assert r.json.get("rpc_code") == -5


def test_security_headers(client, node):
    node.results["getblockcount"] = 1

    # Headers are added to both successful and failed responses
    for r in [client.get(get_block_count_endpoint), client.get(get_block_endpoint)]:
        for header, value in SECURITY_HEADERS.items():
            assert r.headers.get(header) == value


def test_only_get_allowed(client, node):
    for endpoint, _ in ENDPOINTS_AND_METHODS:
        r = client.post(endpoint)
        assert r.status_code == 405

    assert node.calls == []


def test_concurrent_requests(api, node):
    # Both calls must be in flight at the same time for the barrier to be passed, so none of the requests waits for the
    # other one to finish
    barrier = threading.Barrier(2, timeout=5)

    def best_block_hash():
        barrier.wait()
        return GENESIS_BLOCK_HASH

    def block_count():
        barrier.wait()
        return 700000

    node.results["getbestblockhash"] = best_block_hash
    node.results["getblockcount"] = block_count

    responses = {}

    def get(endpoint):
        responses[endpoint] = api.app.test_client().get(endpoint)

    threads = [
        threading.Thread(target=get, args=[endpoint])
        for endpoint in [get_best_block_hash_endpoint, get_block_count_endpoint]
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert responses[get_best_block_hash_endpoint].status_code == HTTP_OK
    assert responses[get_best_block_hash_endpoint].json == GENESIS_BLOCK_HASH
    assert responses[get_block_count_endpoint].status_code == HTTP_OK
    assert responses[get_block_count_endpoint].get_data(as_text=True) == "700000"
    assert len(node.calls) == 2

import json
from socket import timeout
from http.client import HTTPException
from urllib.parse import urlsplit, urlunsplit

from bitcoinrpc.authproxy import AuthServiceProxy, JSONRPCException

import common.errors as errors
from common.tools import floatify, is_256b_hex_str
from common.constants import MAINNET_RPC_PORT
from common.exceptions import (
    InitError,
    AlreadyInitialized,
    ClientNotInitialized,
    UpstreamConnectionError,
    NodeError,
    MalformedResponse,
)

from btcgate.logger import get_logger
from btcgate.constants import DEFAULT_RPC_TIMEOUT

# Codes python-bitcoinrpc uses when the HTTP response is missing, is not json, or lacks a result
TRANSPORT_ERROR_CODES = [-342, -343]

_client = None  # set once by initialize


def initialize(address, user, password, timeout=DEFAULT_RPC_TIMEOUT):
    """
    Builds the process-wide :obj:`UpstreamClient`. It must be called only once, before serving any request.

    Args:
        address (:obj:`str`): the ``bitcoind`` rpc address (``host``, ``host:port`` or a full ``http(s)`` url).
        user (:obj:`str`): the ``bitcoind`` rpc user.
        password (:obj:`str`): the ``bitcoind`` rpc password.
        timeout (:obj:`int`): seconds to wait for ``bitcoind`` on every call.

    Returns:
        :obj:`UpstreamClient`: The newly built client.

    Raises:
        :obj:`AlreadyInitialized <common.exceptions.AlreadyInitialized>`: if the client had already been initialized.
        :obj:`InitError <common.exceptions.InitError>`: if the client cannot be built with the given parameters.
    """

    global _client

    if _client is not None:
        raise AlreadyInitialized("The upstream client was already initialized")

    _client = UpstreamClient(address, user, password, timeout)

    return _client


def get():
    """
    Returns the process-wide :obj:`UpstreamClient`.

    Raises:
        :obj:`ClientNotInitialized <common.exceptions.ClientNotInitialized>`: if ``initialize`` has not been called yet.
    """

    if _client is None:
        raise ClientNotInitialized("The upstream client is used before being initialized")

    return _client


def build_service_url(address, user, password):
    """
    Builds the authenticated ``json-rpc`` url used to reach ``bitcoind``.

    Args:
        address (:obj:`str`): the ``bitcoind`` rpc address (``host``, ``host:port`` or a full ``http(s)`` url). The port
            defaults to the mainnet rpc port.
        user (:obj:`str`): the ``bitcoind`` rpc user.
        password (:obj:`str`): the ``bitcoind`` rpc password.

    Returns:
        :obj:`tuple`: The service url (with credentials) and the public url (without them, safe to be logged).

    Raises:
        :obj:`InitError <common.exceptions.InitError>`: if the address or the credentials cannot be used.
    """

    if not isinstance(address, str) or not address:
        raise InitError("Empty rpc address")
    if not user or not password:
        raise InitError("Both rpc user and rpc password are required")

    if "://" not in address:
        address = "http://" + address

    try:
        url = urlsplit(address)
        port = url.port or MAINNET_RPC_PORT
    except ValueError as e:
        raise InitError("Invalid rpc address ({})".format(e))

    if url.scheme not in ["http", "https"]:
        raise InitError("Wrong rpc address scheme. Expected: http or https. Received: {}".format(url.scheme))
    elif not url.hostname:
        raise InitError("Rpc address has no host")
    elif url.username is not None or url.query or url.fragment:
        raise InitError("Rpc address must only contain scheme, host, port and path")

    host = "[{}]".format(url.hostname) if ":" in url.hostname else url.hostname
    public_url = urlunsplit((url.scheme, "{}:{}".format(host, port), url.path, "", ""))
    service_url = urlunsplit((url.scheme, "{}:{}@{}:{}".format(user, password, host, port), url.path, "", ""))

    # The credentials travel inside the url, so they must survive being parsed back
    parsed = urlsplit(service_url)
    if parsed.username != user or parsed.password != password or parsed.hostname != url.hostname:
        raise InitError("The rpc credentials cannot be encoded in the service url")

    return service_url, public_url


class UpstreamClient:
    """
    The :class:`UpstreamClient` is the gateway handle to ``bitcoind``. It holds the connection parameters and performs
    the ``json-rpc`` calls served by the API.

    The client is never modified once built, so it can be shared by any number of request threads. Every call opens
    its own :obj:`AuthServiceProxy`, since a proxy wraps a single ``http`` connection that cannot be shared.

    Args:
        address (:obj:`str`): the ``bitcoind`` rpc address.
        user (:obj:`str`): the ``bitcoind`` rpc user.
        password (:obj:`str`): the ``bitcoind`` rpc password.
        timeout (:obj:`int`): seconds to wait for ``bitcoind`` on every call. Must be positive.

    Attributes:
        logger (:obj:`Logger <btcgate.logger.Logger>`): The logger for this component.
        url (:obj:`str`): The ``bitcoind`` url, without credentials.
        timeout (:obj:`int`): Seconds to wait for ``bitcoind`` on every call.

    Raises:
        :obj:`InitError <common.exceptions.InitError>`: if the client cannot be built with the given parameters.
    """

    def __init__(self, address, user, password, timeout=DEFAULT_RPC_TIMEOUT):
        self.logger = get_logger(component=UpstreamClient.__name__)
        self._service_url, self.url = build_service_url(address, user, password)
        self.timeout = timeout

        # The proxy never checks the timeout, and sockets take 0 as non-blocking
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise InitError("The rpc timeout must be a positive number of seconds. Received: {}".format(timeout))

        # Building a proxy does not reach bitcoind
        try:
            self._proxy()
        except (ValueError, TypeError, HTTPException) as e:
            raise InitError("Cannot build the rpc transport ({})".format(e))

    def __repr__(self):
        return "UpstreamClient(url={})".format(self.url)

    def _proxy(self):
        return AuthServiceProxy(self._service_url, timeout=self.timeout)

    def call(self, method, *params):
        """
        Performs a single ``json-rpc`` call to ``bitcoind``. Failed calls are not retried.

        Args:
            method (:obj:`str`): the rpc method name.
            params: the positional parameters of the call.

        Returns:
            The ``result`` field of the response, with decimals turned into floats.

        Raises:
            :obj:`UpstreamConnectionError <common.exceptions.UpstreamConnectionError>`: if ``bitcoind`` cannot be
            reached.
            :obj:`NodeError <common.exceptions.NodeError>`: if ``bitcoind`` returns an error.
            :obj:`MalformedResponse <common.exceptions.MalformedResponse>`: if the response cannot be decoded.
        """

        try:
            result = getattr(self._proxy(), method)(*params)

        except JSONRPCException as e:
            error = e.error if isinstance(e.error, dict) else {"message": str(e.error)}
            code = error.get("code")
            message = error.get("message", "Unknown error")
            self.logger.error("bitcoind returned an error", method=method, code=code, message=message)

            if code in TRANSPORT_ERROR_CODES:
                raise MalformedResponse(
                    "Invalid response from bitcoind: {}".format(message), error_code=errors.UPSTREAM_MALFORMED_RESPONSE
                )

            raise NodeError(message, error_code=errors.UPSTREAM_NODE_ERROR, rpc_code=code)

        except (timeout, ConnectionRefusedError, HTTPException, OSError) as e:
            self.logger.error("Cannot connect to bitcoind", method=method, error=str(e))
            reason = str(e) or type(e).__name__
            raise UpstreamConnectionError(
                "Cannot connect to bitcoind: {}".format(reason), error_code=errors.UPSTREAM_UNREACHABLE
            )

        except json.JSONDecodeError as e:
            self.logger.error("Cannot decode bitcoind response", method=method, error=str(e))
            raise MalformedResponse(
                "Cannot decode bitcoind response: {}".format(e), error_code=errors.UPSTREAM_MALFORMED_RESPONSE
            )

        return floatify(result)

    def _check_result(self, method, result, is_valid):
        if not is_valid(result):
            self.logger.error("Unexpected result from bitcoind", method=method, result=result)
            raise MalformedResponse(
                "Unexpected {} result from bitcoind".format(method), error_code=errors.UPSTREAM_MALFORMED_RESPONSE
            )

        return result

    def get_best_block_hash(self):
        """
        Gets the hash of the current best chain tip.

        Returns:
            :obj:`str`: The hex encoded block hash.
        """

        return self._check_result("getbestblockhash", self.call("getbestblockhash"), is_256b_hex_str)

    def get_block_info(self, block_hash):
        """
        Gets the block metadata (``getblock`` with verbosity 1) given its hash.

        Args:
            block_hash (:obj:`str`): the hex encoded block hash.

        Returns:
            :obj:`dict`: The block data as reported by ``bitcoind`` (height, confirmations, size, txids, ...).
        """

        return self._check_result("getblock", self.call("getblock", block_hash, 1), lambda r: isinstance(r, dict))

    def get_block_count(self):
        """
        Gets the height of the most-work fully-validated chain.

        Returns:
            :obj:`int`: The block count.
        """

        return self._check_result(
            "getblockcount",
            self.call("getblockcount"),
            lambda r: isinstance(r, int) and not isinstance(r, bool) and r >= 0,
        )

    def get_blockchain_info(self):
        """
        Gets the chain summary (chain name, blocks, headers, verification progress, ...).

        Returns:
            :obj:`dict`: The chain info as reported by ``bitcoind``.
        """

        return self._check_result("getblockchaininfo", self.call("getblockchaininfo"), lambda r: isinstance(r, dict))

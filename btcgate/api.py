from flask import Flask, Response, request, jsonify
from waitress import serve as wsgi_serve

from common.exceptions import InvalidParameter, UpstreamError, UpstreamConnectionError
from common.constants import HTTP_OK, HTTP_BAD_REQUEST, HTTP_BAD_GATEWAY, HTTP_SERVICE_UNAVAILABLE

from btcgate.logger import get_logger
from btcgate.inspector import check_block_hash
from btcgate.constants import SECURITY_HEADERS


def get_remote_addr():
    """
    Gets the remote client ip address. The ``HTTP_X_REAL_IP`` field is tried first in case the server is behind a
    reverse proxy.

    Returns:
        :obj:`str`: The IP address of the client.
    """

    # Getting the real IP if the server is behind a reverse proxy
    remote_addr = request.environ.get("HTTP_X_REAL_IP")
    if not remote_addr:
        remote_addr = request.environ.get("REMOTE_ADDR")

    return remote_addr


def render_json(result):
    return jsonify(result)


def render_text(result):
    return Response(str(result), mimetype="text/plain")


def parse_block_hash():
    """Gets the ``blockhash`` query parameter of the request, in canonical form."""

    return (check_block_hash(request.args.get("blockhash")),)


def add_security_headers(response):
    """Adds the default security headers to every response, keeping any value the handler already set."""

    for header, value in SECURITY_HEADERS.items():
        response.headers.setdefault(header, value)

    return response


def serve(client, endpoint, threads=4, auto_run=False):
    """
    Starts the API.

    The ``client`` must be fully initialized before calling this method, so no request can be served without it.

    Args:
        client (:obj:`UpstreamClient <btcgate.upstream.UpstreamClient>`): the client used to reach ``bitcoind``.
        endpoint (:obj:`str`): endpoint where the http api will be running (``host:port``).
        threads (:obj:`int`): the number of threads serving requests.
        auto_run (:obj:`bool`): whether the server should be started by this process. False if run with an external
            WSGI. True if run by waitress.

    Returns:
        The application object needed by the WSGI server to run if ``auto_run`` is False, :obj:`None` otherwise.
    """

    api = API(client)

    api.logger.info(f"Initialized. Serving at {endpoint}", bitcoind=client.url)

    if auto_run:
        wsgi_serve(api.app, listen=endpoint, threads=threads)
    else:
        return api.app


class API:
    """
    The :class:`API` is in charge of the interface between the users and ``bitcoind``. Every route performs a single
    rpc call through the :obj:`UpstreamClient <btcgate.upstream.UpstreamClient>` and relays either the result or the
    error.

    Args:
        client (:obj:`UpstreamClient <btcgate.upstream.UpstreamClient>`): the client used to reach ``bitcoind``.

    Attributes:
        logger (:obj:`Logger <btcgate.logger.Logger>`): The logger for this component.
        app: The Flask app of the API server.
        client (:obj:`UpstreamClient <btcgate.upstream.UpstreamClient>`): The client used to reach ``bitcoind``.
    """

    def __init__(self, client):
        if client is None:
            raise ValueError("The API needs an initialized upstream client")

        self.logger = get_logger(component=API.__name__)
        self.app = Flask(__name__)
        self.client = client

        # Adds all the routes to the functions listed above.
        routes = {
            "/getbestblockhash": (self.get_best_block_hash, ["GET"]),
            "/getblock": (self.get_block, ["GET"]),
            "/getblockcount": (self.get_block_count, ["GET"]),
            "/getblockchaininfo": (self.get_blockchain_info, ["GET"]),
        }

        for url, params in routes.items():
            self.app.add_url_rule(url, view_func=params[0], methods=params[1])

        self.app.after_request(add_security_headers)

    def relay(self, fetch, render=render_json, parse=None):
        """
        Serves a request by performing a single query to ``bitcoind``.

        Args:
            fetch (:obj:`function`): the client method to be called. Receives the output of ``parse`` as arguments.
            render (:obj:`function`): builds the successful response from the result.
            parse (:obj:`function`): gets the ``fetch`` arguments from the request. Raises
                :obj:`InvalidParameter <common.exceptions.InvalidParameter>` if the request is wrong.

        Returns:
            :obj:`tuple`: A tuple containing the response and response code (:obj:`int`). For accepted requests, the
            ``rcode`` is always 200. Requests with wrong parameters get a 400 and are never sent to ``bitcoind``. If
            ``bitcoind`` cannot be reached the ``rcode`` is a 503, for any other upstream failure it is a 502. Errors
            contain a json with the ``error`` message and the ``error_code`` (see ``common.errors``).
        """

        remote_addr = get_remote_addr()
        self.logger.info("Received request", endpoint=request.path, from_addr="{}".format(remote_addr))

        try:
            args = parse() if parse else ()
            result = fetch(*args)

        except InvalidParameter as e:
            self.logger.info("Received invalid request", endpoint=request.path, from_addr="{}".format(remote_addr))
            return jsonify(e.to_json()), HTTP_BAD_REQUEST

        except UpstreamError as e:
            rcode = HTTP_SERVICE_UNAVAILABLE if isinstance(e, UpstreamConnectionError) else HTTP_BAD_GATEWAY
            response = e.to_json()
            self.logger.info(
                "Sending response and disconnecting", from_addr="{}".format(remote_addr), response=response
            )
            return jsonify(response), rcode

        self.logger.info(
            "Sending response and disconnecting", endpoint=request.path, from_addr="{}".format(remote_addr)
        )

        return render(result), HTTP_OK

    def get_best_block_hash(self):
        """
        Gives the hash of the best block in the chain.

        Returns:
            :obj:`str`: The json encoded block hash.
        """

        return self.relay(self.client.get_best_block_hash)

    def get_block(self):
        """
        Gives the block metadata for the block given in the ``blockhash`` query parameter.

        Returns:
            :obj:`str`: A json formatted dictionary with the block data, as returned by ``bitcoind``.
        """

        return self.relay(self.client.get_block_info, parse=parse_block_hash)

    def get_block_count(self):
        """
        Gives the current block count.

        Returns:
            :obj:`str`: The block count, as plain text.
        """

        return self.relay(self.client.get_block_count, render=render_text)

    def get_blockchain_info(self):
        """
        Gives the state of the chain (chain name, blocks, headers, verification progress, ...).

        Returns:
            :obj:`str`: A json formatted dictionary with the chain info, as returned by ``bitcoind``.
        """

        return self.relay(self.client.get_blockchain_info)

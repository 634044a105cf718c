from common.exceptions import UpstreamError

"""
Tools is a module with general methods that can used by different entities in the codebase.
"""


def can_connect_to_bitcoind(client):
    """
    Checks if the gateway can reach ``bitcoind`` by querying the block count once.

    Args:
        client (:obj:`UpstreamClient <btcgate.upstream.UpstreamClient>`): the client used to reach ``bitcoind``.

    Returns:
        :obj:`bool`: True if ``bitcoind`` answered. False otherwise.
    """

    can_connect = True

    try:
        client.get_block_count()
    except UpstreamError:
        can_connect = False

    return can_connect

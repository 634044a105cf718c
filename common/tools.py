import re
from decimal import Decimal
from pathlib import Path

from common.constants import BLOCK_HASH_LEN_HEX


def is_256b_hex_str(value):
    """
    Checks if a given value is a 32-byte hex encoded string.

    Args:
        value(:mod:`str`): the value to be checked.

    Returns:
        :obj:`bool`: Whether or not the value matches the format.
    """
    return isinstance(value, str) and re.fullmatch(r"[0-9A-Fa-f]{%d}" % BLOCK_HASH_LEN_HEX, value) is not None


def setup_data_folder(data_folder):
    """
    Create a data folder if the folder does not exists.

    Args:
        data_folder (:obj:`str`): the path of the folder.
    """

    Path(data_folder).mkdir(parents=True, exist_ok=True)


def floatify(obj):
    """
    Takes an object that is a recursive composition of primitive types, lists and dictionaries, and returns an
    equivalent object where every :obj:`Decimal` is replaced with the corresponding :obj:`float`.

    ``bitcoind`` responses are decoded using :obj:`Decimal` for non-integer numbers, which would otherwise be rendered
    as strings when encoded back to json.

    Args:
        obj: an object as specified.

    Returns:
        The modified version of ``obj``.
    """

    if isinstance(obj, list):
        return [floatify(x) for x in obj]
    elif isinstance(obj, dict):
        return {k: floatify(v) for k, v in obj.items()}
    elif isinstance(obj, Decimal):
        return float(obj)
    else:
        return obj

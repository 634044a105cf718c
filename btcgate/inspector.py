import common.errors as errors
from common.tools import is_256b_hex_str
from common.exceptions import InvalidParameter
from common.constants import BLOCK_HASH_LEN_HEX


def check_block_hash(block_hash):
    """
    Checks if the provided ``block_hash`` is correct and returns it in its canonical form.

    Block hashes must be 32-byte hex-encoded strings. Both upper and lower case digits are accepted, the returned hash
    is always lower case (the form ``bitcoind`` reports).

    Args:
        block_hash (:obj:`str`): the block hash to be checked.

    Returns:
        :obj:`str`: The lower case hex encoding of the 32 decoded bytes.

    Raises:
        :obj:`InvalidParameter <common.exceptions.InvalidParameter>`: if the block hash is missing or wrong.
    """

    if not block_hash:
        raise InvalidParameter("empty blockhash received", error_code=errors.BLOCK_HASH_EMPTY_FIELD)

    elif len(block_hash) != BLOCK_HASH_LEN_HEX:
        raise InvalidParameter(
            "wrong blockhash size ({})".format(len(block_hash)), error_code=errors.BLOCK_HASH_WRONG_FIELD_SIZE
        )

    elif not is_256b_hex_str(block_hash):
        raise InvalidParameter("wrong blockhash format", error_code=errors.BLOCK_HASH_WRONG_FIELD_FORMAT)

    return bytes.fromhex(block_hash).hex()

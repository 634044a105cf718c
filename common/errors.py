# Request errors
BLOCK_HASH_EMPTY_FIELD = -2
BLOCK_HASH_WRONG_FIELD_SIZE = -3
BLOCK_HASH_WRONG_FIELD_FORMAT = -4

# Upstream errors
UPSTREAM_UNREACHABLE = -10
UPSTREAM_NODE_ERROR = -11
UPSTREAM_MALFORMED_RESPONSE = -12

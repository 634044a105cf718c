# HTTP
HTTP_OK = 200
HTTP_BAD_REQUEST = 400
HTTP_BAD_GATEWAY = 502
HTTP_SERVICE_UNAVAILABLE = 503

# Bitcoin
BLOCK_HASH_LEN_BYTES = 32
BLOCK_HASH_LEN_HEX = 2 * BLOCK_HASH_LEN_BYTES
MAINNET_RPC_PORT = 8332

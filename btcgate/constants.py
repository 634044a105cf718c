DEFAULT_RPC_TIMEOUT = 30  # Seconds a handler may wait for bitcoind before the call fails

# Headers added to every API response
SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "X-XSS-Protection": "1; mode=block",
}

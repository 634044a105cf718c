def show_usage():
    return (
        "USAGE: "
        "\n\tbtcgated [global options]"
        "\n\nGLOBAL OPTIONS (all modifiable in conf file):"
        "\n\t--rpc-address \t\tbitcoind rpc address (host, host:port or url). Required."
        "\n\t--rpc-user \t\tbitcoind rpcuser. Required."
        "\n\t--rpc-password \t\tbitcoind rpcpassword. Required."
        "\n\t\t\t\tThe rpc user and password cannot contain '/', '?' or '#'."
        "\n\t--rpc-timeout \t\tseconds to wait for bitcoind on every call. Defaults to '30'."
        "\n\t--api-bind \t\taddress that the gateway API will bind to. Defaults to 'localhost'."
        "\n\t--api-port \t\tport that the gateway API will bind to. Defaults to '8000'."
        "\n\t--api-threads \t\tnumber of threads serving requests. Defaults to '4'."
        "\n\t--data-dir \t\tspecify data directory. Defaults to '~/.btcgate'."
        "\n\t-d --daemon \t\truns btcgated in the background."
        "\n\t-h --help \t\tshows this message."
    )

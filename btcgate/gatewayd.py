import os
import daemon
from sys import argv, exit
from getopt import getopt, GetoptError

from common.exceptions import InitError
from common.config_loader import ConfigLoader
from common.tools import setup_data_folder

import btcgate.api as api
import btcgate.upstream as upstream
from btcgate.help import show_usage
from btcgate.tools import can_connect_to_bitcoind
from btcgate.logger import setup_logging, get_logger
from btcgate import DATA_DIR, DEFAULT_CONF, CONF_FILE_NAME


def get_config(command_line_conf, data_dir):
    """
    Combines the command line config with the config loaded from the file and the default config in order to construct
    the final config object.

    Args:
        command_line_conf (:obj:`dict`): a collection of the command line parameters.
        data_dir (:obj:`str`): the path to the data directory where the configuration file may be found.

    Returns:
        :obj:`dict`: A dictionary containing all the system's configuration parameters.

    Raises:
        :obj:`ValueError`: If any parameter has the wrong type or a required one is missing.
    """

    default_conf = {k: dict(v) for k, v in DEFAULT_CONF.items()}
    config_loader = ConfigLoader(data_dir, CONF_FILE_NAME, default_conf, command_line_conf)

    return config_loader.build_config()


def main(config):
    """
    Sets up logging, builds the upstream client and serves the API. This method does not return while the API is
    running.

    Args:
        config (:obj:`dict`): the configuration object.
    """

    setup_data_folder(config.get("DATA_DIR"))
    setup_logging(config.get("LOG_FILE"), silent=config.get("DAEMON"))
    logger = get_logger(component="Daemon")

    logger.info("Starting btcgate")

    try:
        client = upstream.initialize(
            config.get("BTC_RPC_ADDRESS"),
            config.get("BTC_RPC_USER"),
            config.get("BTC_RPC_PASSWORD"),
            config.get("BTC_RPC_TIMEOUT"),
        )
    except InitError as e:
        logger.critical("Cannot initialize the upstream client: {}. Shutting down".format(e))
        exit(1)

    if not can_connect_to_bitcoind(client):
        logger.warning("Cannot reach bitcoind. Requests will fail until it is back online", bitcoind=client.url)

    endpoint = f"{config.get('API_BIND')}:{config.get('API_PORT')}"
    api.serve(client, endpoint, threads=config.get("API_THREADS"), auto_run=True)

    logger.info("Shutting down btcgate")


def run():
    command_line_conf = {}
    data_dir = DATA_DIR

    try:
        opts, _ = getopt(
            argv[1:],
            "hd",
            [
                "rpc-address=",
                "rpc-user=",
                "rpc-password=",
                "rpc-timeout=",
                "api-bind=",
                "api-port=",
                "api-threads=",
                "data-dir=",
                "daemon",
                "help",
            ],
        )

        for opt, arg in opts:
            if opt in ["--rpc-address"]:
                command_line_conf["BTC_RPC_ADDRESS"] = arg
            if opt in ["--rpc-user"]:
                command_line_conf["BTC_RPC_USER"] = arg
            if opt in ["--rpc-password"]:
                command_line_conf["BTC_RPC_PASSWORD"] = arg
            if opt in ["--rpc-timeout"]:
                try:
                    command_line_conf["BTC_RPC_TIMEOUT"] = int(arg)
                except ValueError:
                    exit("rpc-timeout must be an integer")
            if opt in ["--api-bind"]:
                command_line_conf["API_BIND"] = arg
            if opt in ["--api-port"]:
                try:
                    command_line_conf["API_PORT"] = int(arg)
                except ValueError:
                    exit("api-port must be an integer")
            if opt in ["--api-threads"]:
                try:
                    command_line_conf["API_THREADS"] = int(arg)
                except ValueError:
                    exit("api-threads must be an integer")
            if opt in ["--data-dir"]:
                data_dir = os.path.abspath(os.path.expanduser(arg))
            if opt in ["-d", "--daemon"]:
                command_line_conf["DAEMON"] = True
            if opt in ["-h", "--help"]:
                exit(show_usage())

    except GetoptError as e:
        exit(e)

    try:
        config = get_config(command_line_conf, data_dir)
    except ValueError as e:
        exit("Wrong configuration: {}".format(e))

    if config.get("DAEMON"):
        print("Starting btcgate")
        with daemon.DaemonContext():
            main(config)
    else:
        main(config)


if __name__ == "__main__":
    run()

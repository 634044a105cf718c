import os

version_info = (0, 1, 0)
__version__ = ".".join([str(v) for v in version_info])

DATA_DIR = os.path.expanduser("~/.btcgate/")
CONF_FILE_NAME = "btcgate.conf"
DEFAULT_CONF = {
    "API_BIND": {"value": "localhost", "type": str},
    "API_PORT": {"value": 8000, "type": int},
    "API_THREADS": {"value": 4, "type": int},
    "BTC_RPC_ADDRESS": {"value": None, "type": str, "required": True},
    "BTC_RPC_USER": {"value": None, "type": str, "required": True},
    "BTC_RPC_PASSWORD": {"value": None, "type": str, "required": True},
    "BTC_RPC_TIMEOUT": {"value": 30, "type": int},
    "DAEMON": {"value": False, "type": bool},
    "LOG_FILE": {"value": "btcgate.log", "type": str, "path": True},
}

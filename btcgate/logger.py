import logging
import logging.config
import logging.handlers
import structlog
from io import StringIO

configured = False  # set to True once setup_logging is called

timestamper = structlog.processors.TimeStamper(fmt="%d/%m/%Y %H:%M:%S")


def _repr(val):
    """Returns the representation of *val* if it's not a ``str``."""

    return val if isinstance(val, str) else repr(val)


def encode_event_dict(event_dict):
    """
    Encodes an event dictionary in a nicely formatted string, following the general format:

        ``timestamp [component] event (attr1=value1, attr2=value2, ...)``

    Where values that are not present are omitted. See unit tests for a more precise specification.
    """

    sio = StringIO()

    ts = event_dict.pop("timestamp", None)
    if ts:
        sio.write(str(ts) + " ")

    component = event_dict.pop("component", None)
    if component:
        sio.write("[" + component + "] ")

    log_level = event_dict.pop("log_level", None)
    if log_level and log_level != "INFO":
        sio.write(log_level + ": ")

    event = _repr(event_dict.pop("event"))

    sio.write(event)

    # Represent all the key=value elements still in event_dict
    key_value_part = ", ".join(key + "=" + _repr(event_dict[key]) for key in sorted(event_dict.keys()))
    if len(key_value_part) > 0:
        sio.write("  (" + key_value_part + ")")

    return sio.getvalue()


def render_event_dict(_, method_name, event_dict):
    """Final ``structlog`` processor. Tags the event with its level and renders it via ``encode_event_dict``."""

    event_dict = dict(event_dict)
    event_dict["log_level"] = method_name.upper()

    return encode_event_dict(event_dict)


def setup_logging(log_file_path, silent=False):
    """
    Configures the logging options. It must be called only once, before using get_logger.

    Logs are sent both to the console and to ``log_file_path``. Records coming from other libraries (e.g. ``waitress``)
    are rendered the same way.

    Args:
        log_file_path (:obj:`str`): the full path and log file name.
        silent (:obj:`bool`): if True, only ``CRITICAL`` errors are shown to console; otherwise ``INFO`` and above.

    Raises:
        :obj:`RuntimeError`: if ``setup_logging`` had already been called.
    """

    global configured

    if configured:
        raise RuntimeError("Logging was already configured")

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "plain": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "processors": [structlog.stdlib.ProcessorFormatter.remove_processors_meta, render_event_dict],
                    "foreign_pre_chain": [timestamper],
                }
            },
            "handlers": {
                "console": {
                    "level": "INFO" if not silent else "CRITICAL",
                    "class": "logging.StreamHandler",
                    "formatter": "plain",
                },
                "file": {
                    "level": "DEBUG",
                    "class": "logging.handlers.WatchedFileHandler",
                    "filename": log_file_path,
                    "formatter": "plain",
                },
            },
            "loggers": {"": {"handlers": ["console", "file"], "level": "DEBUG", "propagate": True}},
        }
    )

    structlog.configure(
        processors=[
            structlog.stdlib.PositionalArgumentsFormatter(),
            timestamper,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    configured = True


def get_logger(component=None):
    """
    Returns a :obj:`Logger`, that has the given `component` in all future log entries.

    Returns:
        A proxy obtained from ``structlog.get_logger`` with the ``component`` as bound variable.

    Args:
        component(:obj:`str`): the value of the ``component`` field that will be attached to all the logs issued by this
            logger.
    """
    return structlog.get_logger("btcgate", component=component)

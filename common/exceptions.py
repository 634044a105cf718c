class BasicException(Exception):
    """Base exception for all the other custom ones. Allows to store a message and some ``kwargs``."""

    def __init__(self, msg, **kwargs):
        self.msg = msg
        self.kwargs = kwargs

    def __str__(self):
        if len(self.kwargs) > 2:
            params = "".join("{}={}, ".format(k, v) for k, v in self.kwargs.items())

            # Remove the extra 2 characters (space and comma) and add all data to the final message.
            message = self.msg + " ({})".format(params[:-2])

        else:
            message = self.msg

        return message

    def to_json(self):
        return {"error": self.msg, **self.kwargs}


class InvalidParameter(BasicException):
    """Raised when a request or command line parameter is invalid (either missing or wrong)."""


class InitError(BasicException):
    """Raised when the upstream client cannot be built from the given configuration."""


class AlreadyInitialized(InitError):
    """Raised when the upstream client is initialized more than once."""


class ClientNotInitialized(RuntimeError):
    """Raised when the upstream client is requested before it has been initialized."""


class UpstreamError(BasicException):
    """Base class for the failures reported while querying the upstream node."""


class UpstreamConnectionError(UpstreamError):
    """Raised when the upstream node cannot be reached (refused connection, timeout, broken HTTP exchange)."""


class NodeError(UpstreamError):
    """Raised when the upstream node answers with a json-rpc error."""


class MalformedResponse(UpstreamError):
    """Raised when the upstream node response is missing, is not json, or does not have the expected shape."""

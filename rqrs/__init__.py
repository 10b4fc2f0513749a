"""rqrs: a chainable HTTP request builder on top of httpx."""

__version__ = "0.1.0"

from rqrs.config import Bot, from_env_handler, load_config, save_config
from rqrs.dispatch import Dispatcher
from rqrs.errors import DecodeError, InvalidHeader, InvalidMethod, InvalidUrl, RqrsError, TransportError
from rqrs.headers import MASK, HeaderEntry, PublicHeader, SecretHeader
from rqrs.request import HttpMethod, PreparedRequest, RequestBuilder, Rq
from rqrs.response import Response

__all__ = [
    "MASK",
    "Bot",
    "DecodeError",
    "Dispatcher",
    "HeaderEntry",
    "HttpMethod",
    "InvalidHeader",
    "InvalidMethod",
    "InvalidUrl",
    "PreparedRequest",
    "PublicHeader",
    "RequestBuilder",
    "Response",
    "Rq",
    "RqrsError",
    "SecretHeader",
    "TransportError",
    "from_env_handler",
    "load_config",
    "save_config",
]

"""Minimal GraphQL client: build a request, POST it, decode the result."""

from minigql.client import AsyncClient, Client
from minigql.config import ClientConfig, config_from_env, load_config
from minigql.context import Context
from minigql.exceptions import (
    BodyReadError,
    ConfigError,
    ContextCancelledError,
    ContextError,
    DeadlineExceededError,
    DecodeError,
    MiniGQLError,
    RemoteError,
    SerializationError,
    TransportError,
)
from minigql.request import Request

__all__ = [
    "AsyncClient",
    "BodyReadError",
    "Client",
    "ClientConfig",
    "ConfigError",
    "Context",
    "ContextCancelledError",
    "ContextError",
    "DeadlineExceededError",
    "DecodeError",
    "MiniGQLError",
    "RemoteError",
    "Request",
    "SerializationError",
    "TransportError",
    "config_from_env",
    "load_config",
]

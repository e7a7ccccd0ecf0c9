"""GraphQL request message."""

from __future__ import annotations

import json
from typing import Any

from minigql.exceptions import SerializationError


class Request:
    """A GraphQL query or mutation with its named variables.

    The query is stored verbatim. Variables are allocated on the first
    :meth:`set_variable` call and left out of the wire payload while empty.
    """

    def __init__(self, query: str, *, operation_name: str | None = None) -> None:
        self.query = query
        self.operation_name = operation_name
        self.variables: dict[str, Any] | None = None

    def set_variable(self, key: str, value: Any) -> None:
        """Set ``key`` to ``value``, replacing any previous value."""
        if self.variables is None:
            self.variables = {}
        self.variables[key] = value

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.operation_name:
            payload["operationName"] = self.operation_name
        payload["query"] = self.query
        if self.variables:
            payload["variables"] = self.variables
        return payload

    def encode(self) -> bytes:
        """Serialize the request as a JSON body.

        Raises:
            SerializationError: If a variable value is not JSON-encodable.
        """
        try:
            return json.dumps(self.to_payload(), allow_nan=False).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise SerializationError(f"encoding request: {exc}") from exc

    def __repr__(self) -> str:
        return f"Request(operation_name={self.operation_name!r}, query={self.query!r}, variables={self.variables!r})"

"""Response envelope models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidatorFunctionWrapHandler, field_validator

from minigql.exceptions import RemoteError


class GraphQLErrorPayload(BaseModel):
    """One entry of the response ``errors`` array.

    Only ``message`` is required. The optional details are kept when they have
    the usual shape and dropped otherwise.
    """

    model_config = ConfigDict(extra="ignore")

    message: str
    locations: list[dict[str, Any]] | None = None
    path: list[Any] | None = None
    extensions: dict[str, Any] | None = None

    @field_validator("locations", "path", "extensions", mode="wrap")
    @classmethod
    def _drop_malformed(cls, value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
        try:
            return handler(value)
        except ValidationError:
            return None

    def to_exception(self, *, data: Any = None) -> RemoteError:
        return RemoteError(
            self.message,
            locations=self.locations,
            path=self.path,
            extensions=self.extensions,
            data=data,
        )


class ResponseEnvelope(BaseModel):
    """Top-level GraphQL response body: ``{"data": ..., "errors": [...]}``."""

    model_config = ConfigDict(extra="ignore")

    data: Any = None
    errors: list[GraphQLErrorPayload] = Field(default_factory=list)

    @field_validator("errors", mode="before")
    @classmethod
    def _null_errors_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

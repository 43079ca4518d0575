from __future__ import annotations

import json
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

HttpMethod = Literal["get", "post", "put", "patch", "delete", "options", "head", "trace"]
ParamLocation = Literal["path", "query", "header", "cookie"]


class _SpecModel(BaseModel):
    # mutators may add vendor extensions (x-...) anywhere
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class Contact(_SpecModel):
    name: Optional[str] = None
    url: Optional[str] = None
    email: Optional[str] = None


class Info(_SpecModel):
    title: str
    version: str
    description: Optional[str] = None
    contact: Optional[Contact] = None


class Server(_SpecModel):
    url: str
    description: Optional[str] = None


class Parameter(_SpecModel):
    name: str
    in_: ParamLocation = Field(alias="in")
    required: bool = False
    description: Optional[str] = None
    schema_: dict[str, Any] = Field(default_factory=dict, alias="schema")


class Response(_SpecModel):
    description: str = ""
    content: Optional[dict[str, Any]] = None


class Operation(_SpecModel):
    operation_id: Optional[str] = Field(default=None, alias="operationId")
    summary: Optional[str] = None
    description: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    parameters: list[Parameter] = Field(default_factory=list)
    responses: dict[str, Response] = Field(default_factory=dict)
    deprecated: Optional[bool] = None


class OpenApiDocument(_SpecModel):
    openapi: str = "3.0.3"
    info: Info
    servers: Optional[list[Server]] = None
    paths: dict[str, dict[HttpMethod, Operation]] = Field(default_factory=dict)

    # (path, method) in registration order, set by the generator
    _order: list[tuple[str, str]] = PrivateAttr(default_factory=list)

    def operations(self) -> list[tuple[str, str, Operation]]:
        """
        (path, method, operation) in registration order.

        Entries added to `paths` after generation (e.g. by a mutator) follow
        in path order; entries removed since are skipped.
        """
        out: list[tuple[str, str, Operation]] = []
        seen: set[tuple[str, str]] = set()
        for path, method in self._order:
            op = self.paths.get(path, {}).get(method)
            if op is None or (path, method) in seen:
                continue
            seen.add((path, method))
            out.append((path, method, op))
        for path, item in self.paths.items():
            for method, op in item.items():
                if (path, method) not in seen:
                    out.append((path, method, op))
        return out

    def operation_ids(self) -> list[str]:
        return [op.operation_id or "" for _, _, op in self.operations()]

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

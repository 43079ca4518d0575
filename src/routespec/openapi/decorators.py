"""Handler decorators that publish companion registration functions.

Decorating a module-level handler with ``@get("/users/{user_id}")`` does two
things:

- records a ``RouteInfo`` on the handler (read by the route binder), and
- defines the handler's companion registration function in the handler's
  module, under the name the naming rule derives from the handler's name.

The companion has the signature ``(generator, operation_id) -> None`` and
registers the operation fragment built from the handler's signature and
docstring.
"""

from __future__ import annotations

import inspect
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence, TypeVar

from routespec.domain.models import Operation, Parameter, Response
from routespec.naming import NamingRule, default_companion_name
from routespec.openapi.generator import HTTP_METHODS, OpenApiGenerator, OperationInfo

ROUTE_INFO_ATTR = "__routespec_route__"

F = TypeVar("F", bound=Callable[..., Any])

_PATH_PARAM = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)(?::[^}]*)?\}")

_JSON_TYPES: dict[Any, str] = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
    "str": "string",
    "int": "integer",
    "float": "number",
    "bool": "boolean",
}


@dataclass(frozen=True)
class RouteInfo:
    method: str
    path: str
    summary: Optional[str] = None
    description: Optional[str] = None
    tags: tuple[str, ...] = ()
    responses: dict[str, str] = field(default_factory=dict)
    status_code: int = 200
    deprecated: bool = False


def get_route_info(handler: Any) -> Optional[RouteInfo]:
    return getattr(handler, ROUTE_INFO_ATTR, None)


def route(
    method: str,
    path: str,
    *,
    summary: Optional[str] = None,
    description: Optional[str] = None,
    tags: Sequence[str] = (),
    responses: Optional[dict[int | str, str]] = None,
    status_code: int = 200,
    deprecated: bool = False,
    naming_rule: NamingRule = default_companion_name,
) -> Callable[[F], F]:
    if method.lower() not in HTTP_METHODS:
        raise ValueError(f"unsupported HTTP method: {method!r}")
    if not path.startswith("/"):
        raise ValueError(f"route path must start with '/': {path!r}")

    def decorator(fn: F) -> F:
        doc_summary, doc_description = _split_docstring(fn)
        info = RouteInfo(
            method=method.upper(),
            path=path,
            summary=summary or doc_summary,
            description=description or doc_description,
            tags=tuple(tags),
            responses={str(k): v for k, v in (responses or {}).items()},
            status_code=status_code,
            deprecated=deprecated,
        )
        setattr(fn, ROUTE_INFO_ATTR, info)

        def fragment() -> OperationInfo:
            return OperationInfo(
                path=_openapi_path(info.path),
                method=info.method.lower(),
                operation=build_operation(fn, info),
            )

        def add_operation(gen: OpenApiGenerator, operation_id: str) -> None:
            gen.register(operation_id, fragment)

        companion_name = naming_rule(fn.__name__)
        add_operation.__name__ = companion_name
        add_operation.__qualname__ = companion_name
        add_operation.__module__ = fn.__module__
        fn.__globals__[companion_name] = add_operation
        return fn

    return decorator


def get(path: str, **kwargs: Any) -> Callable[[F], F]:
    return route("GET", path, **kwargs)


def post(path: str, **kwargs: Any) -> Callable[[F], F]:
    kwargs.setdefault("status_code", 201)
    return route("POST", path, **kwargs)


def put(path: str, **kwargs: Any) -> Callable[[F], F]:
    return route("PUT", path, **kwargs)


def patch(path: str, **kwargs: Any) -> Callable[[F], F]:
    return route("PATCH", path, **kwargs)


def delete(path: str, **kwargs: Any) -> Callable[[F], F]:
    kwargs.setdefault("status_code", 204)
    return route("DELETE", path, **kwargs)


def build_operation(fn: Callable[..., Any], info: RouteInfo) -> Operation:
    path_names = set(_PATH_PARAM.findall(info.path))
    params: list[Parameter] = []

    for name, p in inspect.signature(fn).parameters.items():
        if p.kind in (p.VAR_POSITIONAL, p.VAR_KEYWORD):
            continue
        json_type = _JSON_TYPES.get(p.annotation)
        if name in path_names:
            params.append(Parameter(name=name, in_="path", required=True, schema_={"type": json_type or "string"}))
        elif json_type is not None:
            # complex annotations are request bodies or dependencies, not query params
            schema: dict[str, Any] = {"type": json_type}
            if isinstance(p.default, (str, int, float, bool)):
                schema["default"] = p.default
            params.append(Parameter(name=name, in_="query", required=p.default is p.empty, schema_=schema))

    # placeholders with no matching argument are still path parameters
    for name in sorted(path_names - {p.name for p in params}):
        params.append(Parameter(name=name, in_="path", required=True, schema_={"type": "string"}))

    responses = {str(info.status_code): Response(description="Successful Response")}
    for code, desc in info.responses.items():
        responses[code] = Response(description=desc)

    return Operation(
        summary=info.summary,
        description=info.description,
        tags=list(info.tags),
        parameters=params,
        responses=responses,
        deprecated=True if info.deprecated else None,
    )


def _openapi_path(path: str) -> str:
    # /items/{item_id:int} -> /items/{item_id}
    return _PATH_PARAM.sub(lambda m: "{" + m.group(1) + "}", path)


def _split_docstring(fn: Callable[..., Any]) -> tuple[Optional[str], Optional[str]]:
    doc = inspect.getdoc(fn)
    if not doc:
        return None, None
    first, _, rest = doc.partition("\n")
    return first.strip() or None, rest.strip() or None

from __future__ import annotations

from typing import Any, Callable, Protocol, Sequence

from fastapi import APIRouter, FastAPI
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette.routing import BaseRoute

from routespec.domain.models import OpenApiDocument
from routespec.openapi.decorators import get_route_info


class RouteBinder(Protocol):
    """Turns dispatch targets (and the finished document) into runtime routes."""

    def bind(self, handler: Callable[..., Any]) -> BaseRoute: ...

    def bind_spec(self, document: OpenApiDocument, path: str) -> BaseRoute: ...


class FastApiRouteBinder:
    def bind(self, handler: Callable[..., Any]) -> APIRoute:
        info = get_route_info(handler)
        if info is None:
            name = getattr(handler, "__qualname__", repr(handler))
            raise TypeError(f"{name} is not a routespec handler (missing route decorator)")

        return APIRoute(
            info.path,
            handler,
            methods=[info.method],
            status_code=info.status_code,
            summary=info.summary,
            description=info.description,
            tags=list(info.tags) or None,
            deprecated=info.deprecated or None,
            name=handler.__name__,
        )

    def bind_spec(self, document: OpenApiDocument, path: str) -> APIRoute:
        # snapshot now; later edits to `document` must not change what is served
        payload = document.model_copy(deep=True).to_dict()

        async def openapi_spec() -> JSONResponse:
            return JSONResponse(payload)

        return APIRoute(
            path,
            openapi_spec,
            methods=["GET"],
            include_in_schema=False,
            name="openapi_spec",
        )


def include_routes(target: FastAPI | APIRouter, routes: Sequence[BaseRoute]) -> None:
    """Hand a generated route collection to the host, preserving order."""
    router = target.router if isinstance(target, FastAPI) else target
    router.routes.extend(routes)

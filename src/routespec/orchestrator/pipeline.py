from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from starlette.routing import BaseRoute

from routespec.config import GeneratorSettings, get_settings
from routespec.domain.models import OpenApiDocument
from routespec.errors import MutatorError, RegistrationError, RouteSpecError
from routespec.grammar.parser import Declaration, RoutePath, parse_declaration
from routespec.naming import NamingRule, companion_path, default_companion_name, operation_id
from routespec.openapi.generator import OpenApiGenerator
from routespec.openapi.metadata import PackageMetadata, build_info
from routespec.orchestrator.resolver import Resolver
from routespec.runtime.routes import FastApiRouteBinder, RouteBinder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerateResult:
    declaration: Declaration
    document: OpenApiDocument
    routes: tuple[BaseRoute, ...]


def generate(
    source: str | Declaration,
    metadata: PackageMetadata,
    *,
    namespace: Optional[Mapping[str, Any]] = None,
    settings: Optional[GeneratorSettings] = None,
    naming_rule: NamingRule = default_companion_name,
    binder: Optional[RouteBinder] = None,
) -> GenerateResult:
    """
    Run one generation pass: parse, register operations, assemble the
    document, apply the mutator, build the route table.

    Strictly linear. Any failure raises a RouteSpecError and nothing is
    returned; there is no partial result.
    """
    declaration = parse_declaration(source) if isinstance(source, str) else source
    settings = settings or get_settings()
    binder = binder or FastApiRouteBinder()
    resolver = Resolver(namespace)

    gen = OpenApiGenerator(settings)
    register_operations(gen, declaration, resolver, naming_rule)

    document = gen.finalize()
    document.info = build_info(metadata)

    if declaration.mutator is not None:
        apply_mutator(document, declaration.mutator, resolver)

    routes = build_route_table(declaration, document, resolver, binder, settings.json_path)

    logger.info(
        "generated %d operations, %d routes (mutator: %s)",
        len(document.operations()),
        len(routes),
        declaration.mutator or "none",
    )
    return GenerateResult(declaration=declaration, document=document, routes=routes)


def routes_with_openapi(
    source: str | Declaration,
    metadata: PackageMetadata,
    **kwargs: Any,
) -> list[BaseRoute]:
    """Declared routes plus the route serving their OpenAPI document."""
    return list(generate(source, metadata, **kwargs).routes)


def register_operations(
    gen: OpenApiGenerator,
    declaration: Declaration,
    resolver: Resolver,
    naming_rule: NamingRule = default_companion_name,
) -> None:
    # declared order, one companion call per route
    for route in declaration.routes:
        companion = companion_path(route, naming_rule)
        op_id = operation_id(route)
        logger.debug("registering %s via %s", op_id, companion)
        try:
            add_operation = resolver.resolve_callable(companion)
            add_operation(gen, op_id)
        except Exception as exc:
            raise RegistrationError(str(route), exc) from exc


def apply_mutator(document: OpenApiDocument, mutator: RoutePath, resolver: Resolver) -> None:
    fn = resolver.resolve_callable(mutator)
    logger.debug("applying spec mutator %s", mutator)
    try:
        fn(document)
    except RouteSpecError:
        raise
    except Exception as exc:
        raise MutatorError(str(mutator), exc) from exc


def build_route_table(
    declaration: Declaration,
    document: OpenApiDocument,
    resolver: Resolver,
    binder: RouteBinder,
    json_path: str,
) -> tuple[BaseRoute, ...]:
    routes: list[BaseRoute] = []
    for route in declaration.routes:
        try:
            handler = resolver.resolve_callable(route)
            routes.append(binder.bind(handler))
        except Exception as exc:
            raise RegistrationError(str(route), exc) from exc

    routes.append(binder.bind_spec(document, json_path))
    return tuple(routes)


def spec_hash(document: OpenApiDocument) -> str:
    blob = json.dumps(document.to_dict(), sort_keys=True, separators=(",", ":")).encode()
    return hashlib.sha256(blob).hexdigest()
